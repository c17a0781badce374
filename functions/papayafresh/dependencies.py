"""
Dependency wiring for the FastAPI app.

The document store and identity provider are process-wide singletons.
`init_backends()` connects them once at startup (the app lifespan calls it);
`shutdown_backends()` releases them at teardown.
"""

from __future__ import annotations

import logging

import firebase_admin
from fastapi import Depends
from firebase_admin import credentials, firestore

from papayafresh.catalog import CatalogService
from papayafresh.config import Settings, get_settings
from papayafresh.errors import BackendInitError
from papayafresh.store import (
    DocumentStore,
    FirebaseIdentityProvider,
    FirestoreDocumentStore,
    IdentityProvider,
    InMemoryDocumentStore,
    InMemoryIdentityProvider,
)

logger = logging.getLogger(__name__)

_firebase_app: firebase_admin.App | None = None
_document_store: DocumentStore | None = None
_identity_provider: IdentityProvider | None = None
_shut_down = False


def _connect_firebase(settings: Settings) -> firebase_admin.App:
    options = {}
    if settings.firebase_database_url:
        options["databaseURL"] = settings.firebase_database_url
    try:
        certificate = credentials.Certificate(settings.firebase_credentials_path)
        return firebase_admin.initialize_app(certificate, options)
    except (OSError, ValueError) as exc:
        raise BackendInitError(f"Firebase initialization failed: {exc}") from exc


def init_backends(settings: Settings | None = None) -> None:
    """Connect the document store and identity provider. Idempotent."""
    global _firebase_app, _document_store, _identity_provider, _shut_down
    _shut_down = False
    if _document_store is not None and _identity_provider is not None:
        return

    settings = settings or get_settings()
    if settings.use_in_memory_backends:
        logger.info("Using in-memory document store and identity provider")
        _document_store = InMemoryDocumentStore()
        _identity_provider = InMemoryIdentityProvider()
        return

    logger.info("Initializing Firebase...")
    _firebase_app = _connect_firebase(settings)
    _document_store = FirestoreDocumentStore(firestore.client(_firebase_app))
    _identity_provider = FirebaseIdentityProvider(_firebase_app)
    logger.info("Firebase initialized successfully")


def shutdown_backends() -> None:
    global _firebase_app, _document_store, _identity_provider, _shut_down
    if _firebase_app is not None:
        firebase_admin.delete_app(_firebase_app)
        logger.info("Firebase app released")
    _firebase_app = None
    _document_store = None
    _identity_provider = None
    _shut_down = True


def _ensure_backends() -> None:
    # Lazy init covers apps served without the lifespan, never a torn-down one.
    if _shut_down:
        raise BackendInitError("Backends were shut down")
    if _document_store is None or _identity_provider is None:
        init_backends()


def get_document_store() -> DocumentStore:
    _ensure_backends()
    return _document_store


def get_identity_provider() -> IdentityProvider:
    _ensure_backends()
    return _identity_provider


def get_catalog_service(
    store: DocumentStore = Depends(get_document_store),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> CatalogService:
    return CatalogService(
        store, identity, max_workers=get_settings().fetch_workers
    )
