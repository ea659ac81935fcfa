"""Tests for datetime_utils module."""

from datetime import UTC, datetime

from scorebook.utils.datetime_utils import format_clock, now_utc


class TestNowUtc:
    def test_is_timezone_aware(self):
        result = now_utc()

        assert isinstance(result, datetime)
        assert result.tzinfo == UTC


class TestFormatClock:
    def test_minutes_and_seconds(self):
        assert format_clock(75) == "1:15"
        assert format_clock(480) == "8:00"
        assert format_clock(9) == "0:09"

    def test_zero_negative_and_missing(self):
        assert format_clock(0) == "0:00"
        assert format_clock(-3) == "0:00"
        assert format_clock(None) == "0:00"
