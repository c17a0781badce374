"""
Document store and identity provider abstractions.

Firestore (through the Firebase Admin SDK) in production, dict-backed
doubles for local runs and tests. Documents are addressed by slash-separated
paths, e.g. `users/{userId}/shelf/{docId}`.
"""

from __future__ import annotations

import base64
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterator, Optional, Protocol

from firebase_admin import auth
from firebase_admin import exceptions as firebase_exceptions
from google.api_core import exceptions as google_exceptions
from google.cloud.firestore_v1 import DocumentReference, GeoPoint

from papayafresh.errors import IdentityProviderError, StoreError

USERS_COLLECTION = "users"
SHELF_COLLECTION = "shelf"
HISTORY_COLLECTION = "history"


@dataclass(frozen=True)
class StoredDocument:
    """A snapshot of one document: its id, full path and field data."""

    id: str
    path: str
    data: dict = field(default_factory=dict)

    def to_json(self) -> dict:
        """Fields flattened next to the id, as the admin console expects."""
        return {"id": self.id, **json_safe(self.data)}


def json_safe(value: Any) -> Any:
    """Converts Firestore field values into JSON-serializable ones."""
    if isinstance(value, dict):
        return {key: json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_safe(item) for item in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, DocumentReference):
        return value.path
    if isinstance(value, GeoPoint):
        return {"latitude": value.latitude, "longitude": value.longitude}
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    return value


def user_path(user_id: str) -> str:
    return f"{USERS_COLLECTION}/{user_id}"


def subcollection_path(user_id: str, name: str) -> str:
    return f"{user_path(user_id)}/{name}"


class DocumentStore(Protocol):
    """The reads and deletes the API performs against the document store."""

    def list_users(self, limit: Optional[int] = None) -> list[StoredDocument]:
        ...

    def get_user(self, user_id: str) -> Optional[StoredDocument]:
        ...

    def get_subcollection(
        self, user_id: str, name: str, limit: Optional[int] = None
    ) -> list[StoredDocument]:
        ...

    def delete_document(self, path: str) -> None:
        ...

    def list_collections(self) -> list[str]:
        ...


class IdentityProvider(Protocol):
    """Account management for the sign-in provider behind the mobile app."""

    def delete_user(self, user_id: str) -> None:
        ...


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except google_exceptions.GoogleAPIError as exc:
        raise StoreError(f"Failed to {action}: {exc}") from exc


class FirestoreDocumentStore:
    """Firestore-backed store. Accepts a `google.cloud.firestore.Client`."""

    def __init__(self, client):
        self._client = client

    @staticmethod
    def _to_stored(snapshot) -> StoredDocument:
        return StoredDocument(
            id=snapshot.id,
            path=snapshot.reference.path,
            data=snapshot.to_dict() or {},
        )

    def _users(self):
        return self._client.collection(USERS_COLLECTION)

    def list_users(self, limit: Optional[int] = None) -> list[StoredDocument]:
        query = self._users()
        if limit is not None:
            query = query.limit(limit)
        with _store_errors("list users"):
            return [self._to_stored(snapshot) for snapshot in query.stream()]

    def get_user(self, user_id: str) -> Optional[StoredDocument]:
        with _store_errors(f"read user {user_id}"):
            snapshot = self._users().document(user_id).get()
        if not snapshot.exists:
            return None
        return self._to_stored(snapshot)

    def get_subcollection(
        self, user_id: str, name: str, limit: Optional[int] = None
    ) -> list[StoredDocument]:
        query = self._users().document(user_id).collection(name)
        if limit is not None:
            query = query.limit(limit)
        with _store_errors(f"read {name} for user {user_id}"):
            return [self._to_stored(snapshot) for snapshot in query.stream()]

    def delete_document(self, path: str) -> None:
        with _store_errors(f"delete {path}"):
            self._client.document(path).delete()

    def list_collections(self) -> list[str]:
        with _store_errors("list collections"):
            return [collection.id for collection in self._client.collections()]


class FirebaseIdentityProvider:
    """Deletes Firebase Authentication accounts."""

    def __init__(self, app=None):
        self._app = app

    def delete_user(self, user_id: str) -> None:
        try:
            auth.delete_user(user_id, app=self._app)
        except (firebase_exceptions.FirebaseError, ValueError) as exc:
            raise IdentityProviderError(str(exc)) from exc


class InMemoryDocumentStore:
    """Simple in-memory document store for development and tests."""

    def __init__(self):
        self.documents: dict[str, dict] = {}
        # Collection paths (e.g. "users" or "users/u1/shelf") whose reads fail.
        self.failing_paths: set[str] = set()
        self.deleted_paths: list[str] = []

    def add_user(self, user_id: str, data: Optional[dict] = None) -> None:
        self.documents[user_path(user_id)] = dict(data or {})

    def add_document(
        self, user_id: str, name: str, doc_id: str, data: Optional[dict] = None
    ) -> None:
        self.documents[f"{subcollection_path(user_id, name)}/{doc_id}"] = dict(
            data or {}
        )

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.documents.clear()
        self.failing_paths.clear()
        self.deleted_paths.clear()

    def _check(self, collection_path: str) -> None:
        if collection_path in self.failing_paths:
            raise StoreError(f"Failed to read {collection_path}: unavailable")

    def _children(
        self, collection_path: str, limit: Optional[int]
    ) -> list[StoredDocument]:
        self._check(collection_path)
        depth = collection_path.count("/") + 2
        prefix = f"{collection_path}/"
        items = [
            StoredDocument(id=path.rsplit("/", 1)[1], path=path, data=dict(data))
            for path, data in self.documents.items()
            if path.startswith(prefix) and path.count("/") + 1 == depth
        ]
        return items if limit is None else items[:limit]

    def list_users(self, limit: Optional[int] = None) -> list[StoredDocument]:
        return self._children(USERS_COLLECTION, limit)

    def get_user(self, user_id: str) -> Optional[StoredDocument]:
        self._check(USERS_COLLECTION)
        path = user_path(user_id)
        if path not in self.documents:
            return None
        return StoredDocument(id=user_id, path=path, data=dict(self.documents[path]))

    def get_subcollection(
        self, user_id: str, name: str, limit: Optional[int] = None
    ) -> list[StoredDocument]:
        return self._children(subcollection_path(user_id, name), limit)

    def delete_document(self, path: str) -> None:
        self.documents.pop(path, None)
        self.deleted_paths.append(path)

    def list_collections(self) -> list[str]:
        return sorted({path.split("/", 1)[0] for path in self.documents})


class InMemoryIdentityProvider:
    """Test double for the identity provider."""

    def __init__(self, user_ids: Optional[set[str]] = None):
        self.user_ids: set[str] = set(user_ids or ())
        self.deleted: list[str] = []

    def delete_user(self, user_id: str) -> None:
        if user_id not in self.user_ids:
            raise IdentityProviderError(
                f"No user record found for the provided user ID: {user_id}"
            )
        self.user_ids.discard(user_id)
        self.deleted.append(user_id)
