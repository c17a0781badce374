"""
Scan records read from a user's `shelf` (or `history`) sub-collection.
"""

from dataclasses import dataclass, field, fields
from typing import Any, List, Optional

from dacite import Config, from_dict

from shared.json_utils import convert_keys

UNKNOWN = "Unknown"
UNKNOWN_PAPAYA = "Unknown Papaya"

# Per-prediction detail the scanner app stores on shelf documents. Only the
# dashboard fold carries these; the scan listing leaves them out.
DETAIL_FIELDS = ("all_characteristics", "all_model_profile", "all_confidences")


@dataclass(frozen=True)
class ScanRecord:
    """A read-only view of one scanned papaya, tagged with its owner."""

    id: str
    user_id: str
    user_email: str = UNKNOWN
    name: str = UNKNOWN_PAPAYA
    color: str = UNKNOWN
    freshness: str = UNKNOWN
    harvested_date: Optional[Any] = None
    scanned_date: Optional[Any] = None
    image_url: Optional[str] = None
    estimated_days: Any = 0
    day_range: str = UNKNOWN
    expiry_date: Optional[Any] = None
    added_at: Optional[Any] = None
    archived_at: Optional[Any] = None
    removal_reason: Optional[str] = None
    removed_date: Optional[Any] = None
    all_characteristics: List[Any] = field(default_factory=list)
    all_model_profile: List[Any] = field(default_factory=list)
    all_confidences: List[Any] = field(default_factory=list)

    @classmethod
    def from_document(
        cls, doc_id: str, user_id: str, user_email: Optional[str], data: dict
    ) -> "ScanRecord":
        """
        Builds a record from raw document fields (camelCase, as stored).

        Missing and empty fields fall back to the placeholder defaults, so a
        stored `""` name reads as "Unknown Papaya" just like a missing one.
        """
        snake_data = convert_keys(dict(data or {}), "camel_to_snake", deep=False)
        values = {key: value for key, value in snake_data.items() if value}
        values.update(id=doc_id, user_id=user_id, user_email=user_email or UNKNOWN)
        return from_dict(data_class=cls, data=values, config=Config(check_types=False))

    def to_json(self, include_details: bool = True) -> dict:
        # Shallow: stored values may hold client-bound references.
        payload = {
            item.name: getattr(self, item.name)
            for item in fields(self)
            if include_details or item.name not in DETAIL_FIELDS
        }
        return convert_keys(payload, "snake_to_camel", deep=False)
