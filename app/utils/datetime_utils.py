"""
Datetime utilities.

Provides timezone-aware datetime functions.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def from_unix(timestamp: int | float) -> datetime:
    """
    Convert a unix timestamp (seconds) to an aware UTC datetime.

    Args:
        timestamp: Seconds since epoch, e.g. a block timestamp

    Returns:
        Aware UTC datetime
    """
    return datetime.fromtimestamp(timestamp, tz=UTC)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from the database."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
