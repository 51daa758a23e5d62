"""Date/time helpers.

Always store and operate on timezone-aware UTC datetimes; persist them as
ISO-8601 strings.
"""

from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Preferred replacement for `datetime.now(UTC)`."""
    return datetime.now(UTC)


def to_iso(dt: datetime) -> str:
    """Serialize an aware datetime as ISO-8601 in UTC."""
    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware (UTC)")
    return dt.astimezone(UTC).isoformat()


def from_iso(value: str) -> datetime:
    """Parse an ISO-8601 string (``+00:00`` or ``Z`` suffix) into an aware UTC datetime."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)
