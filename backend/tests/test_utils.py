"""
Tests for duration formatting and day windows.
"""

from datetime import date, datetime

from racelog.utils import day_window, elapsed_ms, format_duration_ms


class TestFormatDurationMs:
    """Tests for format_duration_ms."""

    def test_hundredths_are_truncated(self):
        """5061 ms keeps .06, it is not rounded up."""
        assert format_duration_ms(5061) == "00:00:05.06"

    def test_truncates_not_rounds_near_boundary(self):
        assert format_duration_ms(999) == "00:00:00.99"

    def test_zero(self):
        assert format_duration_ms(0) == "00:00:00.00"

    def test_minutes_and_hours(self):
        assert format_duration_ms(320_000) == "00:05:20.00"
        assert format_duration_ms(3_723_450) == "01:02:03.45"

    def test_none_is_undefined(self):
        assert format_duration_ms(None) is None


class TestDayWindow:

    def test_window_is_one_local_day(self):
        start, end = day_window(date(2026, 3, 14))
        assert start == datetime(2026, 3, 14, 0, 0)
        assert end == datetime(2026, 3, 15, 0, 0)


def test_elapsed_ms_keeps_millisecond_precision():
    a = datetime(2026, 3, 14, 7, 0, 0, 120_000)
    b = datetime(2026, 3, 14, 7, 1, 20, 125_999)
    assert elapsed_ms(a, b) == 80_005
