"""Unit tests for time range parsing."""

from datetime import UTC, datetime, timedelta

import pytest

from app.utils.exceptions import TimeRangeError
from app.utils.time_range import (
    DAY_MS,
    HOUR_MS,
    format_time_range,
    get_start_time,
    get_time_range_in_hours,
    is_valid_time_range,
    parse_time_range,
)


class TestParseTimeRange:
    """Tests for parse_time_range."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("12h", 12 * HOUR_MS),
            ("24h", 24 * HOUR_MS),
            ("day", DAY_MS),
            ("month", 30 * DAY_MS),
            ("year", 365 * DAY_MS),
        ],
    )
    def test_named_periods(self, value, expected):
        assert parse_time_range(value) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("1h", HOUR_MS),
            ("7d", 7 * DAY_MS),
            ("2w", 14 * DAY_MS),
            ("3m", 90 * DAY_MS),
        ],
    )
    def test_number_unit_form(self, value, expected):
        assert parse_time_range(value) == expected

    def test_24h_in_milliseconds(self):
        """24h is 86 400 000 ms."""
        assert parse_time_range("24h") == 86_400_000

    @pytest.mark.parametrize("value", ["abc", "24", "h", "7x", "-1d", "1.5h", "", None, "0h"])
    def test_invalid_expressions(self, value):
        with pytest.raises(TimeRangeError):
            parse_time_range(value)

    def test_error_is_value_error(self):
        """Callers can treat bad ranges as bad input."""
        with pytest.raises(ValueError):
            parse_time_range("forever")

    def test_is_valid_time_range(self):
        assert is_valid_time_range("7d") is True
        assert is_valid_time_range("7days") is False


class TestRangeHelpers:
    """Tests for start time, hours and formatting."""

    def test_get_start_time(self):
        now = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)
        assert get_start_time("24h", now=now) == now - timedelta(days=1)

    def test_get_start_time_defaults_to_now(self):
        before = datetime.now(UTC)
        start = get_start_time("1h")
        assert before - timedelta(hours=1, seconds=5) <= start <= before

    def test_hours(self):
        assert get_time_range_in_hours("12h") == 12
        assert get_time_range_in_hours("1w") == 168

    @pytest.mark.parametrize(
        "milliseconds,expected",
        [
            (3 * HOUR_MS, "3h"),
            (2 * DAY_MS, "2d"),
            (7 * DAY_MS, "1w"),
            (30 * DAY_MS, "1m"),
            (60 * DAY_MS, "2m"),
        ],
    )
    def test_format_time_range(self, milliseconds, expected):
        assert format_time_range(milliseconds) == expected
