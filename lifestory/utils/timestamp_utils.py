"""
Timestamp utilities for consistent time handling across the system.
"""

from datetime import datetime, timezone
from typing import Optional

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def now_iso() -> str:
    """Return the current UTC time as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp into an aware datetime.

    Args:
        value: ISO 8601 string, a trailing 'Z' is accepted; naive values are treated as UTC

    Returns:
        Aware datetime, or None when the value is missing or unparseable
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def sort_key(value: Optional[str]) -> datetime:
    """Chronological sort key; unparseable timestamps sort first."""
    return parse_timestamp(value) or _EPOCH


def year_of(value: Optional[str]) -> Optional[int]:
    """Year of an ISO 8601 timestamp, or None."""
    parsed = parse_timestamp(value)
    return parsed.year if parsed else None
