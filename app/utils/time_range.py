"""
Time range utilities.

Parses range expressions used by the analytics endpoints:
named periods (12h, 24h, day, month, year) or <number><unit>
where unit is h (hour), d (day), w (week) or m (30-day month).
"""

import re
from datetime import datetime, timedelta

from app.utils.datetime_utils import utc_now
from app.utils.exceptions import TimeRangeError

HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS

# Named periods in milliseconds
TIME_PERIODS: dict[str, int] = {
    "12h": 12 * HOUR_MS,
    "24h": 24 * HOUR_MS,
    "day": DAY_MS,
    "month": 30 * DAY_MS,
    "year": 365 * DAY_MS,
}

# Units of the <number><unit> form in milliseconds
TIME_UNITS: dict[str, int] = {
    "h": HOUR_MS,
    "d": DAY_MS,
    "w": 7 * DAY_MS,
    "m": 30 * DAY_MS,  # approximate month
}

_RANGE_RE = re.compile(r"^(\d+)([hdwm])$")


def parse_time_range(value: str | None) -> int:
    """
    Parse a range expression into milliseconds.

    Args:
        value: Range such as "24h", "7d", "2w" or "month"

    Returns:
        Range length in milliseconds

    Raises:
        TimeRangeError: If the expression is not recognized

    Examples:
        >>> parse_time_range("24h")
        86400000
        >>> parse_time_range("7d")
        604800000
    """
    if not value:
        raise TimeRangeError(str(value))

    if value in TIME_PERIODS:
        return TIME_PERIODS[value]

    match = _RANGE_RE.match(value)
    if not match:
        raise TimeRangeError(value)

    amount, unit = match.groups()
    milliseconds = int(amount) * TIME_UNITS[unit]
    if milliseconds == 0:
        raise TimeRangeError(value)
    return milliseconds


def is_valid_time_range(value: str | None) -> bool:
    """Check whether a range expression parses."""
    try:
        parse_time_range(value)
    except TimeRangeError:
        return False
    return True


def get_start_time(value: str, now: datetime | None = None) -> datetime:
    """
    Get the start of a range ending now.

    Args:
        value: Range expression
        now: Range end (default: current UTC time)

    Returns:
        Aware UTC datetime of the range start
    """
    end = now or utc_now()
    return end - timedelta(milliseconds=parse_time_range(value))


def get_time_range_in_hours(value: str) -> float:
    """Range length in hours."""
    return parse_time_range(value) / HOUR_MS


def format_time_range(milliseconds: int) -> str:
    """
    Format milliseconds as the largest whole unit.

    Examples:
        >>> format_time_range(604800000)
        '1w'
        >>> format_time_range(3 * 3600 * 1000)
        '3h'
    """
    hours = milliseconds // HOUR_MS
    days = hours // 24
    weeks = days // 7
    months = days // 30

    if months > 0:
        return f"{months}m"
    if weeks > 0:
        return f"{weeks}w"
    if days > 0:
        return f"{days}d"
    return f"{hours}h"
