"""Datetime utilities for common operations."""

from datetime import datetime, timezone
from typing import Optional


def now() -> datetime:
    """Get current datetime in UTC."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalise a datetime to an aware UTC value.

    Naive datetimes are assumed to already be in UTC (this is what SQLite
    hands back).
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Format datetime as ISO 8601 in UTC."""
    value = ensure_utc(value)
    return value.isoformat() if value else None
