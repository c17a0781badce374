"""
Folds every user's shelf and history documents into the admin dashboard
summary.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Optional, Sequence

from papayafresh.store import (
    HISTORY_COLLECTION,
    SHELF_COLLECTION,
    DocumentStore,
    StoredDocument,
)
from shared.scan_stats import (
    JUST_NOW,
    PLACEHOLDER_DISTRIBUTION,
    PLACEHOLDER_WEEKLY_SCANS,
    first_present,
    format_time_ago,
    freshness_distribution,
    to_datetime,
    weekly_scan_counts,
)
from shared.scans import ScanRecord

logger = logging.getLogger(__name__)

MAX_RECENT_ACTIVITIES = 6
NEW_USER_SHARE = 0.2
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass
class UserScans:
    """One user's documents. `error` is set when a sub-collection read failed."""

    user: StoredDocument
    shelf: list[StoredDocument] = field(default_factory=list)
    history: list[StoredDocument] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def email(self) -> Optional[str]:
        return self.user.data.get("email")

    @property
    def label(self) -> str:
        return self.email or f"User {self.user.id[:8]}"

    def shelf_records(self) -> list[ScanRecord]:
        return [
            ScanRecord.from_document(doc.id, self.user.id, self.email, doc.data)
            for doc in self.shelf
        ]


def fetch_user_scans(
    store: DocumentStore,
    users: Sequence[StoredDocument],
    collections: Sequence[str] = (SHELF_COLLECTION, HISTORY_COLLECTION),
    max_workers: int = 8,
) -> list[UserScans]:
    """
    Reads the requested sub-collections for every user in parallel.

    A failed read only blanks that user's contribution; the error is logged
    and recorded on the returned entry. Results keep the order of `users`.
    """

    def _fetch(user: StoredDocument) -> UserScans:
        try:
            fetched = {
                name: store.get_subcollection(user.id, name) for name in collections
            }
        except Exception as exc:
            logger.warning("Error processing user %s: %s", user.id, exc)
            return UserScans(user=user, error=str(exc))
        return UserScans(
            user=user,
            shelf=fetched.get(SHELF_COLLECTION, []),
            history=fetched.get(HISTORY_COLLECTION, []),
        )

    if not users:
        return []
    with ThreadPoolExecutor(max_workers=min(max_workers, len(users))) as executor:
        return list(executor.map(_fetch, users))


@dataclass
class ActivityEntry:
    user: str
    action: str
    time: str
    type: Optional[str] = None


@dataclass
class DashboardSummary:
    total_users: int
    new_users: int
    total_scans: int
    total_shelf_items: int
    total_history_items: int
    ripeness_distribution: dict[str, int]
    weekly_scans: list[int]
    recent_activities: list[ActivityEntry]
    activity_count: int
    user_ids: list[str]
    failed_user_ids: list[str]

    @property
    def average_scans_per_user(self) -> str | int:
        if not self.total_users:
            return 0
        return f"{self.total_scans / self.total_users:.1f}"

    def to_json(self) -> dict:
        return {
            "totalUsers": self.total_users,
            "newUsers": self.new_users,
            "totalScans": self.total_scans,
            "papayasOnShelf": self.total_shelf_items,
            "ripenessDistribution": self.ripeness_distribution,
            "weeklyScans": self.weekly_scans,
            "recentActivities": [asdict(entry) for entry in self.recent_activities],
            "userStats": {
                "averageScansPerUser": self.average_scans_per_user,
                "activeUsers": self.activity_count,
                "totalShelfItems": self.total_shelf_items,
                "totalHistoryItems": self.total_history_items,
            },
            "_debug": {
                "usersFound": self.total_users,
                "shelfItemsFound": self.total_shelf_items,
                "historyItemsFound": self.total_history_items,
                "userIds": self.user_ids,
                "failedUserIds": self.failed_user_ids,
            },
        }


EMPTY_ACTIVITY = ActivityEntry(
    user="No activity yet", action="Waiting for user scans", time=JUST_NOW
)
ERROR_ACTIVITY = ActivityEntry(
    user="System", action="Error loading data", time=JUST_NOW
)


def fallback_summary(message: str) -> dict:
    """Payload served with a 500 when the user listing itself fails."""
    return {
        "success": False,
        "error": message,
        "totalUsers": 0,
        "newUsers": 0,
        "totalScans": 0,
        "papayasOnShelf": 0,
        "ripenessDistribution": dict(PLACEHOLDER_DISTRIBUTION),
        "weeklyScans": list(PLACEHOLDER_WEEKLY_SCANS),
        "recentActivities": [asdict(ERROR_ACTIVITY)],
    }


def _recent_activities(
    user_scans: Sequence[UserScans], now: datetime
) -> list[ActivityEntry]:
    # Ordered on the raw anchor; the label is formatted afterwards.
    pending: list[tuple[datetime, ActivityEntry]] = []
    for entry in user_scans:
        for scan in entry.shelf_records():
            anchor = first_present(scan.scanned_date, scan.added_at)
            pending.append(
                (
                    to_datetime(anchor) or _EPOCH,
                    ActivityEntry(
                        user=entry.label,
                        action=f"Scanned {scan.name} - {scan.freshness}",
                        time=format_time_ago(anchor, now=now),
                        type="scan",
                    ),
                )
            )
        for doc in entry.history:
            anchor = first_present(
                doc.data.get("scannedDate"), doc.data.get("archivedAt")
            )
            pending.append(
                (
                    to_datetime(anchor) or _EPOCH,
                    ActivityEntry(
                        user=entry.label,
                        action=f"History: {doc.data.get('name') or 'Activity'}",
                        time=format_time_ago(anchor, now=now),
                        type="history",
                    ),
                )
            )
    pending.sort(key=lambda item: item[0], reverse=True)
    return [activity for _, activity in pending]


def summarize(
    user_scans: Sequence[UserScans], now: Optional[datetime] = None
) -> DashboardSummary:
    """Builds the summary from already-fetched per-user documents."""
    now = now or datetime.now(timezone.utc)
    total_users = len(user_scans)
    total_shelf = sum(len(entry.shelf) for entry in user_scans)
    total_history = sum(len(entry.history) for entry in user_scans)
    shelf_records = [scan for entry in user_scans for scan in entry.shelf_records()]
    activities = _recent_activities(user_scans, now)

    return DashboardSummary(
        total_users=total_users,
        new_users=max(1, math.floor(total_users * NEW_USER_SHARE)),
        total_scans=total_shelf + total_history,
        total_shelf_items=total_shelf,
        total_history_items=total_history,
        ripeness_distribution=freshness_distribution(
            scan.freshness for scan in shelf_records
        ),
        weekly_scans=weekly_scan_counts(shelf_records, now=now),
        recent_activities=activities[:MAX_RECENT_ACTIVITIES] or [EMPTY_ACTIVITY],
        activity_count=len(activities),
        user_ids=[entry.user.id for entry in user_scans],
        failed_user_ids=[entry.user.id for entry in user_scans if entry.error],
    )


class DashboardAggregator:
    """Reads users and their scans from the store and summarizes them."""

    def __init__(self, store: DocumentStore, max_workers: int = 8):
        self.store = store
        self.max_workers = max_workers

    def aggregate(self, now: Optional[datetime] = None) -> DashboardSummary:
        # A failing user listing propagates; per-user failures do not.
        users = self.store.list_users()
        logger.info("Fetching dashboard data for %d users", len(users))
        user_scans = fetch_user_scans(self.store, users, max_workers=self.max_workers)
        summary = summarize(user_scans, now=now)
        logger.info(
            "Dashboard data retrieved: users=%d scans=%d shelf=%d activities=%d",
            summary.total_users,
            summary.total_scans,
            summary.total_shelf_items,
            summary.activity_count,
        )
        return summary
