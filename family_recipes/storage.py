from __future__ import annotations

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

from .errors import StorageReadError, StorageWriteError
from .models import Recipe, new_recipe_id

logger = logging.getLogger(__name__)

STORE_KEY = "family_recipes_v1"


class BlobStore(Protocol):
    """Protocol describing the persistence required by the repository."""

    def load(self) -> List[Recipe]:
        """Return the persisted recipes, or an empty list if there are none."""

    def save(self, recipes: Iterable[Recipe]) -> None:
        """Persist the complete collection, replacing the previous snapshot."""

    def clear(self) -> None:
        """Remove the persisted snapshot."""


def encode_snapshot(recipes: Iterable[Recipe]) -> str:
    # Pure ASCII: lone surrogates stay escaped.
    return json.dumps([recipe.to_dict() for recipe in recipes])


def decode_snapshot(raw: str) -> List[Recipe]:
    try:
        data = json.loads(raw)
    except (ValueError, RecursionError) as exc:
        raise StorageReadError(f"Snapshot is not valid JSON: {exc}") from exc

    if not isinstance(data, list):
        raise StorageReadError(f"Snapshot must be a JSON array, got {type(data).__name__}.")

    recipes: Dict[str, Recipe] = {}
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            logger.warning("Skipping snapshot entry %d: expected an object", index)
            continue
        recipe = Recipe.from_dict(item)
        if not recipe.id:
            recipe.id = new_recipe_id()
            logger.warning("Snapshot entry %d had no id, assigned %s", index, recipe.id)
        elif recipe.id in recipes:
            logger.warning("Skipping snapshot entry %d: duplicate id %s", index, recipe.id)
            continue
        recipes[recipe.id] = recipe
    return list(recipes.values())


class SnapshotBlobStore(ABC):
    """Base class for stores that keep the collection as one JSON text blob.

    Subclasses implement the three raw operations and raise
    :class:`StorageReadError` or :class:`StorageWriteError` on failure. The
    public methods never raise: failures are logged and absorbed here.
    """

    @abstractmethod
    def _read_text(self) -> Optional[str]:
        """Return the stored JSON text, or ``None`` if nothing is stored."""

    @abstractmethod
    def _write_text(self, text: str) -> None:
        """Replace the stored JSON text."""

    @abstractmethod
    def _delete(self) -> None:
        """Remove the stored JSON text; a missing snapshot is not an error."""

    def load(self) -> List[Recipe]:
        try:
            raw = self._read_text()
            if not raw:
                logger.info("No stored recipes found in %s", self)
                return []
            recipes = decode_snapshot(raw)
        except StorageReadError:
            logger.exception("Failed to load storage from %s", self)
            return []

        logger.debug("Loaded %d recipes from %s", len(recipes), self)
        return recipes

    def save(self, recipes: Iterable[Recipe]) -> None:
        try:
            self._write_text(encode_snapshot(recipes))
        except StorageWriteError:
            logger.exception("Failed to save storage to %s", self)

    def clear(self) -> None:
        try:
            self._delete()
        except StorageWriteError:
            logger.exception("Failed to clear storage in %s", self)


class MemoryBlobStore(SnapshotBlobStore):
    """Keeps the serialized snapshot in memory. Used by tests."""

    def __init__(self, initial: Optional[str] = None) -> None:
        self.raw = initial

    def __repr__(self) -> str:
        return "MemoryBlobStore()"

    def _read_text(self) -> Optional[str]:
        return self.raw

    def _write_text(self, text: str) -> None:
        self.raw = text

    def _delete(self) -> None:
        self.raw = None


class JsonFileBlobStore(SnapshotBlobStore):
    """Stores the snapshot in a single UTF-8 JSON file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    @classmethod
    def in_directory(cls, directory: Path | str, key: str = STORE_KEY) -> "JsonFileBlobStore":
        return cls(Path(directory) / f"{key}.json")

    def __repr__(self) -> str:
        return f"JsonFileBlobStore({str(self.path)!r})"

    def _read_text(self) -> Optional[str]:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageReadError(str(exc)) from exc

    def _write_text(self, text: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # Write to a sibling first so readers never see a half-written file.
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(text)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, UnicodeError) as exc:
            raise StorageWriteError(str(exc)) from exc

    def _delete(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageWriteError(str(exc)) from exc


__all__ = [
    "BlobStore",
    "JsonFileBlobStore",
    "MemoryBlobStore",
    "STORE_KEY",
    "SnapshotBlobStore",
    "decode_snapshot",
    "encode_snapshot",
]
