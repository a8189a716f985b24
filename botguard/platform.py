"""Boundary with the content platform.

The coordinator never talks to a remote API directly.  It is handed an
object that satisfies ``Platform`` (a real API client, or ``MockPlatform``
for tests and local runs) and validates every activity record it receives
into an ``Activity`` before any detector sees it.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

REJECTED = "rejected"

# Abuse report reason codes for artificial view traffic.
REASON_BOTTING = "botting"
REASON_ARTIFICIAL_TRAFFIC = "artificial_traffic_spam"

_REQUIRED_FIELDS = ("id", "published_at", "type")


@dataclass(frozen=True)
class Activity:
    id: str
    published_at: int  # ms since epoch
    type: str
    description: str = ""

    @classmethod
    def from_dict(cls, raw: dict) -> "Activity":
        """Validate a raw activity record. Raises ValueError if malformed."""
        if not isinstance(raw, dict):
            raise ValueError(f"activity must be a mapping, got {type(raw).__name__}")
        for name in _REQUIRED_FIELDS:
            if raw.get(name) in (None, ""):
                raise ValueError(f"activity missing required field '{name}'")
        description = raw.get("description") or ""
        if not isinstance(description, str):
            raise ValueError("activity description must be a string")
        return cls(
            id=str(raw["id"]),
            published_at=_parse_timestamp(raw["published_at"]),
            type=str(raw["type"]),
            description=description,
        )


def _parse_timestamp(value) -> int:
    """Accept epoch milliseconds or an ISO-8601 string (as most APIs return)."""
    if isinstance(value, bool):
        raise ValueError(f"invalid published_at: {value!r}")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ValueError(f"invalid published_at: {value!r}") from None
        return int(parsed.timestamp() * 1000)
    raise ValueError(f"invalid published_at: {value!r}")


class Platform(Protocol):
    """Capabilities the coordinator needs from the remote service."""

    def fetch_recent_activities(self, channel_id: str, limit: int) -> list:
        ...

    def set_moderation_status(self, activity_id: str, status: str) -> None:
        ...

    def fetch_view_count(self, item_id: str) -> int:
        ...

    def file_abuse_report(self, item_id: str, reason_code: str,
                          secondary_reason_code: str, comment: str) -> None:
        ...
