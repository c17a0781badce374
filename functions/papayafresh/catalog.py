"""
Read and delete operations over users and their scan collections.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from papayafresh.dashboard import (
    DashboardAggregator,
    DashboardSummary,
    fetch_user_scans,
)
from papayafresh.errors import IdentityProviderError, UserNotFoundError
from papayafresh.store import (
    HISTORY_COLLECTION,
    SHELF_COLLECTION,
    DocumentStore,
    IdentityProvider,
    StoredDocument,
    json_safe,
)
from shared.scan_stats import to_datetime
from shared.scans import ScanRecord

logger = logging.getLogger(__name__)

DEBUG_SAMPLE_USERS = 3
DEBUG_SAMPLE_DOCS = 2

DATABASE_STRUCTURE = {
    "users": {
        "fields": ["email", "user_id", "created_at"],
        "subcollections": [SHELF_COLLECTION, HISTORY_COLLECTION],
    },
    "shelf": {
        "fields": [
            "name",
            "color",
            "freshness",
            "harvestedDate",
            "scannedDate",
            "imageUrl",
            "estimatedDays",
            "dayRange",
            "expiryDate",
            "addedAt",
        ]
    },
    "history": {
        "fields": [
            "name",
            "color",
            "freshness",
            "scannedDate",
            "archivedAt",
            "removalReason",
        ]
    },
}


@dataclass
class DeletedUser:
    user_id: str
    email: Optional[str]
    shelf_deleted: int
    history_deleted: int
    auth_deleted: bool


def _scanned_sort_key(scan: ScanRecord) -> float:
    scanned_at = to_datetime(scan.scanned_date)
    return scanned_at.timestamp() if scanned_at else 0.0


class CatalogService:
    """The operations behind the admin console endpoints."""

    def __init__(
        self,
        store: DocumentStore,
        identity: IdentityProvider,
        max_workers: int = 8,
    ):
        self.store = store
        self.identity = identity
        self.max_workers = max_workers

    def dashboard_stats(self) -> DashboardSummary:
        return DashboardAggregator(self.store, max_workers=self.max_workers).aggregate()

    def list_users_with_counts(self) -> list[dict]:
        users = self.store.list_users()
        results = []
        for entry in fetch_user_scans(self.store, users, max_workers=self.max_workers):
            data = entry.user.data
            shelf_count = len(entry.shelf)
            history_count = len(entry.history)
            record = {
                "userId": entry.user.id,
                "email": data.get("email") or "No email",
                "user_id": data.get("user_id") or "No user_id",
                "created_at": json_safe(data.get("created_at")) or "Unknown",
                "shelfCount": shelf_count,
                "historyCount": history_count,
                "totalScans": shelf_count + history_count,
            }
            if entry.error:
                record["error"] = entry.error
            else:
                record["userData"] = json_safe(data)
            results.append(record)
        logger.info("Found %d users", len(results))
        return results

    def list_all_scans(self) -> list[ScanRecord]:
        """Every shelf scan across all users, newest scan first."""
        users = self.store.list_users()
        scans = [
            scan
            for entry in fetch_user_scans(
                self.store,
                users,
                collections=(SHELF_COLLECTION,),
                max_workers=self.max_workers,
            )
            for scan in entry.shelf_records()
        ]
        scans.sort(key=_scanned_sort_key, reverse=True)
        logger.info("Found %d scans from database", len(scans))
        return scans

    def get_shelf(self, user_id: str) -> list[StoredDocument]:
        shelf = self.store.get_subcollection(user_id, SHELF_COLLECTION)
        logger.info("Found %d shelf items for user %s", len(shelf), user_id)
        return shelf

    def get_history(self, user_id: str) -> list[StoredDocument]:
        history = self.store.get_subcollection(user_id, HISTORY_COLLECTION)
        logger.info("Found %d history items for user %s", len(history), user_id)
        return history

    def delete_user(self, user_id: str) -> DeletedUser:
        """
        Removes a user and everything stored under it.

        Shelf and history documents go first, then the user document, then
        the sign-in account. A missing sign-in account does not fail the
        deletion since the stored data is already gone by then.
        """
        user = self.store.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        deleted = {}
        for name in (SHELF_COLLECTION, HISTORY_COLLECTION):
            docs = self.store.get_subcollection(user_id, name)
            for doc in docs:
                self.store.delete_document(doc.path)
            deleted[name] = len(docs)
        self.store.delete_document(user.path)

        auth_deleted = True
        try:
            self.identity.delete_user(user_id)
            logger.info("User %s deleted from Authentication", user_id)
        except IdentityProviderError as exc:
            auth_deleted = False
            logger.warning("User %s not found in Authentication: %s", user_id, exc)

        logger.info("User %s deleted successfully", user_id)
        return DeletedUser(
            user_id=user_id,
            email=user.data.get("email"),
            shelf_deleted=deleted[SHELF_COLLECTION],
            history_deleted=deleted[HISTORY_COLLECTION],
            auth_deleted=auth_deleted,
        )

    def describe_database(self) -> dict:
        """Collections, a few sample users and the expected field layout."""
        sample_users = []
        for user in self.store.list_users(limit=DEBUG_SAMPLE_USERS):
            shelf = self.store.get_subcollection(
                user.id, SHELF_COLLECTION, limit=DEBUG_SAMPLE_DOCS
            )
            history = self.store.get_subcollection(
                user.id, HISTORY_COLLECTION, limit=DEBUG_SAMPLE_DOCS
            )
            sample_users.append(
                {
                    "userId": user.id,
                    "userData": json_safe(user.data),
                    "shelfCount": len(shelf),
                    "historyCount": len(history),
                    "sampleShelf": [
                        {"id": doc.id, "data": json_safe(doc.data)} for doc in shelf
                    ],
                    "sampleHistory": [
                        {"id": doc.id, "data": json_safe(doc.data)} for doc in history
                    ],
                }
            )
        return {
            "collections": self.store.list_collections(),
            "totalUsers": len(self.store.list_users()),
            "sampleUsers": sample_users,
            "databaseStructure": DATABASE_STRUCTURE,
        }
