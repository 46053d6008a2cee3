"""Export and merge-import of the full recipe collection."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List

from .errors import InvalidImportFormat
from .models import Recipe, new_recipe_id

EXPORT_FILENAME = "family-recipes.json"


def export_recipes(recipes: Iterable[Recipe]) -> str:
    """Serialize ``recipes`` as a pretty-printed JSON array."""

    return json.dumps([recipe.to_dict() for recipe in recipes], indent=2)


def parse_import(text: str) -> List[Any]:
    try:
        data = json.loads(text)
    except (ValueError, RecursionError) as exc:
        raise InvalidImportFormat("Invalid JSON file.") from exc

    if not isinstance(data, list):
        raise InvalidImportFormat("Imported file must be a JSON array of recipes.")
    return data


def import_merge(existing: Iterable[Recipe], imported: Any) -> List[Recipe]:
    """Merge ``imported`` into ``existing`` by id, last write wins.

    Incoming records without an id get a fresh one. Records sharing an id
    with an existing record replace it in place; the result lists the
    existing records first, then newly introduced ids in the order they were
    first seen.
    """

    if not isinstance(imported, list):
        raise InvalidImportFormat("Imported file must be a JSON array of recipes.")

    merged: Dict[str, Recipe] = {recipe.id: recipe for recipe in existing}
    for index, item in enumerate(imported):
        if not isinstance(item, dict):
            raise InvalidImportFormat(f"Entry {index + 1} is not a recipe object.")
        recipe = Recipe.from_dict(item)
        if not recipe.id:
            recipe.id = new_recipe_id()
        merged[recipe.id] = recipe
    return list(merged.values())


__all__ = ["EXPORT_FILENAME", "export_recipes", "import_merge", "parse_import"]
