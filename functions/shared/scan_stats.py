"""
Pure helpers behind the dashboard charts: freshness buckets, weekly scan
counts and "time ago" labels.

Timestamps arrive in whatever shape the store or the mobile client wrote
them: native datetimes, ISO-8601 strings, `{seconds: ...}` mappings from
serialized Firestore timestamps, or protobuf-style objects exposing
`ToDatetime()`.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Literal, Optional, Sequence

Ripeness = Literal["unripe", "ripe", "overripe"]

RIPENESS_BUCKETS: tuple[Ripeness, ...] = ("unripe", "ripe", "overripe")
PLACEHOLDER_DISTRIBUTION: Dict[str, int] = {"unripe": 1, "ripe": 1, "overripe": 1}
PLACEHOLDER_WEEKLY_SCANS: tuple[int, ...] = (2, 5, 8, 12)
WEEKS_TRACKED = 4

RECENT = "Recent"
JUST_NOW = "Just now"

_ONE_WEEK = timedelta(weeks=1)
_ONE_MINUTE = timedelta(minutes=1)
_MINUTES_PER_HOUR = 60
_MINUTES_PER_DAY = 1440


def classify_freshness(label: Optional[str]) -> Ripeness:
    """Maps a free-text freshness label to a ripeness bucket. First match wins."""
    value = str(label or "").lower()
    if "unripe" in value or value == "green" or "early" in value:
        return "unripe"
    if "overripe" in value or value == "rotten" or "late" in value:
        return "overripe"
    return "ripe"


def freshness_distribution(labels: Iterable[Optional[str]]) -> Dict[str, int]:
    distribution = {bucket: 0 for bucket in RIPENESS_BUCKETS}
    for label in labels:
        distribution[classify_freshness(label)] += 1
    # Charts divide by the total.
    if not any(distribution.values()):
        return dict(PLACEHOLDER_DISTRIBUTION)
    return distribution


def _from_epoch_seconds(seconds: Any) -> datetime:
    return datetime.fromtimestamp(float(seconds), tz=timezone.utc)


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Decodes a stored timestamp into an aware UTC datetime.

    Returns None for missing values and for anything that cannot be read as
    a point in time. Naive datetimes and strings are taken to be UTC. Bare
    numbers are epoch milliseconds, the unit the web client writes.
    """
    if not value:
        return None
    try:
        if isinstance(value, datetime):
            result = value
        elif callable(getattr(value, "ToDatetime", None)):
            result = value.ToDatetime()
        elif callable(getattr(value, "to_datetime", None)):
            result = value.to_datetime()
        elif isinstance(value, str):
            result = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        elif isinstance(value, dict):
            seconds = value.get("seconds", value.get("_seconds"))
            if seconds is None:
                return None
            result = _from_epoch_seconds(seconds)
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            result = _from_epoch_seconds(value / 1000)
        elif getattr(value, "seconds", None) is not None:
            result = _from_epoch_seconds(value.seconds)
        else:
            return None
    except Exception:
        return None
    if not isinstance(result, datetime):
        return None
    if result.tzinfo is None:
        result = result.replace(tzinfo=timezone.utc)
    return result


def first_present(*values: Any) -> Any:
    """Returns the first truthy value, or None."""
    for value in values:
        if value:
            return value
    return None


def scan_anchor(scan: Any) -> Any:
    """The raw timestamp that places a shelf scan in time."""
    return first_present(scan.scanned_date, scan.added_at, scan.harvested_date)


def weekly_scan_counts(
    scans: Sequence[Any], now: Optional[datetime] = None
) -> List[int]:
    """
    Counts scans per week for the last four weeks, oldest week first.

    Scans without a readable anchor, or outside the window, are skipped.
    Every bucket is floored to 1. An empty input yields the fixed sample
    series so a fresh install still draws a chart.
    """
    if not scans:
        return list(PLACEHOLDER_WEEKLY_SCANS)

    now = now or datetime.now(timezone.utc)
    counts = [0] * WEEKS_TRACKED
    for scan in scans:
        anchored_at = to_datetime(scan_anchor(scan))
        if anchored_at is None:
            continue
        weeks_ago = (now - anchored_at) // _ONE_WEEK
        if 0 <= weeks_ago < WEEKS_TRACKED:
            counts[WEEKS_TRACKED - 1 - weeks_ago] += 1
    return [max(1, count) for count in counts]


def format_time_ago(value: Any, now: Optional[datetime] = None) -> str:
    """Renders a stored timestamp as a coarse relative label. Never raises."""
    happened_at = to_datetime(value)
    if happened_at is None:
        return RECENT

    now = now or datetime.now(timezone.utc)
    minutes = (now - happened_at) // _ONE_MINUTE
    if minutes < 1:
        return JUST_NOW
    if minutes < _MINUTES_PER_HOUR:
        return f"{minutes} mins ago"
    if minutes < _MINUTES_PER_DAY:
        return f"{minutes // _MINUTES_PER_HOUR} hr ago"
    return f"{minutes // _MINUTES_PER_DAY} days ago"
