"""Audit timeline models.

The audit timeline records a ledger snapshot each time the user performs a
tracked action (adding a record, importing a file). Entries are merged by id
on import and ordered by timestamp.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import Field, field_validator

from ledgerlight_core.models.records import LedgerModel


def parse_iso_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, treating naive values and ``Z`` as UTC.

    Raises:
        ValueError: If the value is not an ISO-8601 timestamp.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class AuditTimelineEntry(LedgerModel):
    """Single snapshot in the audit timeline.

    Attributes:
        id: Entry identifier, the dedup key on merge
        timestamp: When the snapshot was taken (ISO-8601)
        context_tag: What triggered the snapshot (e.g. "add-record", "import")
        snapshot: Ledger payload captured at that moment
    """

    id: str = Field(description="Entry identifier")
    timestamp: str = Field(description="ISO-8601 capture time")
    context_tag: str = Field(default="", description="Action that produced the entry")
    snapshot: Optional[dict[str, Any]] = Field(
        default=None,
        description="Ledger payload captured with the entry",
    )

    @field_validator("timestamp")
    @classmethod
    def timestamp_is_iso(cls, v: str) -> str:
        """Reject timestamps that cannot be ordered."""
        parse_iso_timestamp(v)
        return v

    @property
    def captured_at(self) -> datetime:
        """Timezone-aware capture time."""
        return parse_iso_timestamp(self.timestamp)


__all__ = [
    "parse_iso_timestamp",
    "AuditTimelineEntry",
]
