from __future__ import annotations

import os
from typing import Any, Optional

from google.api_core import exceptions as gcloud_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import firestore, storage

from .errors import StorageReadError, StorageWriteError
from .storage import STORE_KEY, SnapshotBlobStore

SNAPSHOT_FIELD = "items"
GCLOUD_ERRORS = (gcloud_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError)


class FirestoreBlobStore(SnapshotBlobStore):
    """Keeps the snapshot in one Firestore document.

    The JSON text lives in the document's ``items`` field. Firestore caps a
    document at 1 MiB, so collections with many embedded photos can fail to
    save; those failures are logged like any other write error.
    """

    def __init__(
        self,
        *,
        project: Optional[str] = None,
        collection_name: str = "recipes",
        document_id: str = STORE_KEY,
        client: Any = None,
    ) -> None:
        self._project = project
        self._collection_name = collection_name
        self._document_id = document_id

        self._firestore_client = client or firestore.Client(project=project)
        self._document = self._firestore_client.collection(collection_name).document(document_id)

    @classmethod
    def from_env(cls) -> "FirestoreBlobStore":
        """Build a store from environment variables."""

        project = os.environ.get("GCP_PROJECT")
        collection_name = os.environ.get("RECIPES_COLLECTION", "recipes")
        return cls(project=project, collection_name=collection_name)

    def __repr__(self) -> str:
        return f"FirestoreBlobStore({self._collection_name}/{self._document_id})"

    def _read_text(self) -> Optional[str]:
        try:
            snapshot = self._document.get()
        except GCLOUD_ERRORS as exc:
            raise StorageReadError(str(exc)) from exc

        if not snapshot.exists:
            return None

        data = snapshot.to_dict() or {}
        raw = data.get(SNAPSHOT_FIELD)
        if raw is not None and not isinstance(raw, str):
            raise StorageReadError(f"Field '{SNAPSHOT_FIELD}' must hold JSON text.")
        return raw

    def _write_text(self, text: str) -> None:
        try:
            self._document.set({SNAPSHOT_FIELD: text, "updated_at": firestore.SERVER_TIMESTAMP})
        except GCLOUD_ERRORS as exc:
            raise StorageWriteError(str(exc)) from exc

    def _delete(self) -> None:
        try:
            self._document.delete()
        except gcloud_exceptions.NotFound:
            # Nothing stored yet; clearing is idempotent.
            pass
        except GCLOUD_ERRORS as exc:
            raise StorageWriteError(str(exc)) from exc


class CloudStorageBlobStore(SnapshotBlobStore):
    """Keeps the snapshot as a single JSON object in a Cloud Storage bucket."""

    def __init__(
        self,
        *,
        bucket_name: str,
        project: Optional[str] = None,
        blob_name: str = f"{STORE_KEY}.json",
        client: Any = None,
    ) -> None:
        self._project = project
        self._bucket_name = bucket_name
        self._blob_name = blob_name

        self._storage_client = client or storage.Client(project=project)
        self._bucket = self._storage_client.bucket(bucket_name)

    @classmethod
    def from_env(cls) -> "CloudStorageBlobStore":
        """Build a store from environment variables."""

        bucket_name = os.environ.get("GCS_BUCKET")
        if not bucket_name:
            raise RuntimeError("GCS_BUCKET must be set to use the Cloud Storage backend.")
        return cls(bucket_name=bucket_name, project=os.environ.get("GCP_PROJECT"))

    def __repr__(self) -> str:
        return f"CloudStorageBlobStore(gs://{self._bucket_name}/{self._blob_name})"

    def _read_text(self) -> Optional[str]:
        blob = self._bucket.blob(self._blob_name)
        try:
            return blob.download_as_text(encoding="utf-8")
        except gcloud_exceptions.NotFound:
            return None
        except GCLOUD_ERRORS as exc:
            raise StorageReadError(str(exc)) from exc

    def _write_text(self, text: str) -> None:
        blob = self._bucket.blob(self._blob_name)
        try:
            blob.upload_from_string(text, content_type="application/json")
        except GCLOUD_ERRORS as exc:
            raise StorageWriteError(str(exc)) from exc

    def _delete(self) -> None:
        blob = self._bucket.blob(self._blob_name)
        try:
            blob.delete()
        except gcloud_exceptions.NotFound:
            # The object may already have been removed manually; ignore.
            pass
        except GCLOUD_ERRORS as exc:
            raise StorageWriteError(str(exc)) from exc


__all__ = ["CloudStorageBlobStore", "FirestoreBlobStore"]
