from __future__ import annotations

from typing import Iterable, List

from .models import Recipe


def split_tags(tags: str) -> List[str]:
    """Split a comma separated tag field into trimmed, non-empty tags."""

    return [tag.strip() for tag in (tags or "").split(",") if tag.strip()]


def distinct_tags(recipes: Iterable[Recipe]) -> List[str]:
    seen: dict[str, None] = {}
    for recipe in recipes:
        for tag in split_tags(recipe.tags):
            seen.setdefault(tag, None)
    return list(seen)


def distinct_authors(recipes: Iterable[Recipe]) -> List[str]:
    seen: dict[str, None] = {}
    for recipe in recipes:
        if recipe.author:
            seen.setdefault(recipe.author, None)
    return list(seen)


def _matches(recipe: Recipe, query: str, tag: str, author: str) -> bool:
    if tag and tag.lower() not in [t.lower() for t in split_tags(recipe.tags)]:
        return False
    if author and (recipe.author or "").lower() != author.lower():
        return False
    if not query:
        return True
    haystack = " ".join(
        (recipe.title, recipe.ingredients, recipe.directions, recipe.notes)
    ).lower()
    return query in haystack


def filter_recipes(
    recipes: Iterable[Recipe], query: str = "", tag: str = "", author: str = ""
) -> List[Recipe]:
    """Return the recipes matching every non-empty criterion, in order.

    ``tag`` must be one of the recipe's tags and ``author`` must equal the
    recipe's author, both ignoring case. ``query`` is a case-insensitive
    substring search over title, ingredients, directions and notes.
    """

    query = (query or "").strip().lower()
    return [recipe for recipe in recipes if _matches(recipe, query, tag or "", author or "")]


def excerpt(recipe: Recipe, lines: int = 3) -> str:
    return ", ".join((recipe.ingredients or "").split("\n")[:lines])


__all__ = ["distinct_authors", "distinct_tags", "excerpt", "filter_recipes", "split_tags"]
