from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, fields
from typing import Any, Mapping, Optional

TEXT_FIELDS = ("title", "author", "tags", "ingredients", "directions", "notes")


def new_recipe_id() -> str:
    return uuid.uuid4().hex


def _utf8(value: Any) -> str:
    # Lone surrogates survive json.loads but cannot be encoded as UTF-8.
    text = value if isinstance(value, str) else str(value)
    return text.encode("utf-8", "replace").decode("utf-8")


def _text(value: Any) -> str:
    if value is None:
        return ""
    return _utf8(value)


def _optional(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return _utf8(value)


@dataclass
class RecipeFields:
    """Everything a user can edit on a recipe.

    ``photo`` is ``None`` when no new photo was supplied.
    """

    title: str = ""
    author: str = ""
    date: Optional[str] = None
    tags: str = ""
    ingredients: str = ""
    directions: str = ""
    notes: str = ""
    photo: Optional[str] = None


@dataclass
class Recipe:
    """Domain object representing a stored recipe."""

    id: str
    title: str = ""
    author: str = ""
    date: Optional[str] = None
    tags: str = ""
    ingredients: str = ""
    directions: str = ""
    notes: str = ""
    photo: Optional[str] = None

    @classmethod
    def from_fields(cls, recipe_id: str, values: RecipeFields) -> "Recipe":
        return cls(id=recipe_id, **asdict(values))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Recipe":
        """Build a recipe from a persisted or imported mapping.

        Missing text fields become empty strings, missing or empty optional
        fields become ``None`` and unknown keys are ignored.
        """

        values = {name: _text(data.get(name)) for name in TEXT_FIELDS}
        return cls(
            id=_text(data.get("id")),
            date=_optional(data.get("date")),
            photo=_optional(data.get("photo")),
            **values,
        )

    def to_dict(self) -> dict[str, Any]:
        return {field.name: getattr(self, field.name) for field in fields(self)}


__all__ = ["Recipe", "RecipeFields", "new_recipe_id"]
