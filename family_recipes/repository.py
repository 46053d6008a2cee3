from __future__ import annotations

import logging
from dataclasses import asdict, replace
from typing import Iterable, Iterator, List, Optional, Tuple

from .codec import export_recipes, import_merge, parse_import
from .errors import RecipeNotFound
from .models import Recipe, RecipeFields, new_recipe_id
from .storage import BlobStore

logger = logging.getLogger(__name__)


class RecipeRepository:
    """Owns the in-memory recipe collection and persists it through a blob store.

    The collection is loaded once when the repository is created. Every
    mutation updates memory first and then saves the full collection exactly
    once. The blob store absorbs write failures, so memory stays the source of
    truth for the rest of the session even when a save fails.
    """

    def __init__(self, store: BlobStore) -> None:
        self._store = store
        self._recipes: List[Recipe] = list(store.load())
        logger.info("Recipe repository loaded %d recipes", len(self._recipes))

    def __len__(self) -> int:
        return len(self._recipes)

    def __iter__(self) -> Iterator[Recipe]:
        return iter(self.list_all())

    def list_all(self) -> Tuple[Recipe, ...]:
        """Return copies of every recipe in display order, newest first."""

        return tuple(replace(recipe) for recipe in self._recipes)

    def find_by_id(self, recipe_id: str) -> Optional[Recipe]:
        index = self._index_of(recipe_id)
        if index is None:
            return None
        return replace(self._recipes[index])

    def get(self, recipe_id: str) -> Recipe:
        """Return a single recipe or raise :class:`RecipeNotFound` if missing."""

        recipe = self.find_by_id(recipe_id)
        if recipe is None:
            raise RecipeNotFound(recipe_id)
        return recipe

    def create(self, fields: RecipeFields) -> Recipe:
        recipe = Recipe.from_fields(new_recipe_id(), fields)
        self._recipes.insert(0, recipe)
        self._persist()
        logger.info("Created recipe %s", recipe.id)
        return replace(recipe)

    def update(self, recipe_id: str, fields: RecipeFields, *, remove_photo: bool = False) -> Recipe:
        """Replace every field of an existing recipe except its id.

        When ``fields.photo`` is ``None`` the current photo is kept unless
        ``remove_photo`` is set.
        """

        index = self._index_of(recipe_id)
        if index is None:
            raise RecipeNotFound(recipe_id)

        values = asdict(fields)
        if fields.photo is None and not remove_photo:
            values["photo"] = self._recipes[index].photo

        updated = Recipe(id=recipe_id, **values)
        self._recipes[index] = updated
        self._persist()
        logger.info("Updated recipe %s", recipe_id)
        return replace(updated)

    def delete(self, recipe_id: str) -> bool:
        index = self._index_of(recipe_id)
        if index is None:
            logger.debug("Nothing to delete for recipe %s", recipe_id)
            return False

        del self._recipes[index]
        self._persist()
        logger.info("Deleted recipe %s", recipe_id)
        return True

    def clear(self) -> None:
        self._recipes = []
        self._store.clear()
        logger.info("Cleared all recipes")

    def replace_all(self, recipes: Iterable[Recipe]) -> None:
        self._recipes = [replace(recipe) for recipe in recipes]
        self._persist()

    def export_json(self) -> str:
        return export_recipes(self._recipes)

    def import_json(self, text: str) -> int:
        """Merge a JSON export into the collection and return its record count.

        Raises :class:`InvalidImportFormat` without touching the collection
        when ``text`` is not a JSON array of recipe objects.
        """

        imported = parse_import(text)
        merged = import_merge(self._recipes, imported)
        self.replace_all(merged)
        logger.info("Imported %d recipes, collection now holds %d", len(imported), len(merged))
        return len(imported)

    def _index_of(self, recipe_id: str) -> Optional[int]:
        for index, recipe in enumerate(self._recipes):
            if recipe.id == recipe_id:
                return index
        return None

    def _persist(self) -> None:
        self._store.save(self._recipes)


__all__ = ["RecipeRepository"]
