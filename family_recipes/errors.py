class StorageReadError(Exception):
    """The persisted snapshot could not be read or decoded."""


class StorageWriteError(Exception):
    """The persisted snapshot could not be written."""


class RecipeNotFound(KeyError):
    """Raised when an operation references a recipe id that does not exist."""

    def __init__(self, recipe_id: str) -> None:
        super().__init__(recipe_id)
        self.recipe_id = recipe_id

    def __str__(self) -> str:
        return f"Recipe '{self.recipe_id}' does not exist."


class InvalidImportFormat(ValueError):
    """Imported content is not a JSON array of recipes."""


__all__ = [
    "InvalidImportFormat",
    "RecipeNotFound",
    "StorageReadError",
    "StorageWriteError",
]
