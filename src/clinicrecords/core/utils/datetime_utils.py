"""
Date and time utility functions.
"""

from datetime import date, datetime, timezone
from typing import Union


def get_current_timestamp() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(timezone.utc)


def get_current_date() -> date:
    """Get current UTC calendar date."""
    return get_current_timestamp().date()


def ensure_utc(timestamp: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken as UTC."""
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


def month_key(value: Union[date, datetime]) -> str:
    """Calendar month of a date or timestamp as 'YYYY-MM' (UTC for timestamps)."""
    if isinstance(value, datetime):
        value = ensure_utc(value)
    return f"{value.year:04d}-{value.month:02d}"
