from __future__ import annotations

import os

from .storage import BlobStore, JsonFileBlobStore, MemoryBlobStore

try:
    from .gcp_storage import CloudStorageBlobStore, FirestoreBlobStore
except ImportError:  # pragma: no cover - allows running without the gcp extra
    CloudStorageBlobStore = None  # type: ignore[assignment,misc]
    FirestoreBlobStore = None  # type: ignore[assignment,misc]

DEFAULT_BACKEND = "file"
DEFAULT_DATA_DIR = "data"


def blob_store_from_env() -> BlobStore:
    """Build the blob store selected by ``RECIPES_BACKEND``.

    ``file`` (the default) keeps the snapshot under ``RECIPES_DATA_DIR``,
    ``memory`` keeps it for the life of the process, ``firestore`` and ``gcs``
    use Google Cloud and need the optional ``gcp`` dependencies.
    """

    backend = os.environ.get("RECIPES_BACKEND", DEFAULT_BACKEND).strip().lower()

    if backend == "file":
        return JsonFileBlobStore.in_directory(os.environ.get("RECIPES_DATA_DIR", DEFAULT_DATA_DIR))
    if backend == "memory":
        return MemoryBlobStore()
    if backend in ("firestore", "gcs"):
        if FirestoreBlobStore is None or CloudStorageBlobStore is None:
            raise RuntimeError(
                "google-cloud-firestore and google-cloud-storage are not installed. "
                "Install the 'gcp' extra or choose another RECIPES_BACKEND."
            )
        if backend == "firestore":
            return FirestoreBlobStore.from_env()
        return CloudStorageBlobStore.from_env()

    raise RuntimeError(f"Unknown RECIPES_BACKEND '{backend}'.")


__all__ = ["blob_store_from_env"]
