"""Tests for the week window helper."""

from datetime import datetime, timedelta, timezone

from app.utils.progress.week_window import as_naive_utc, get_week_window
from tests.conftest import WEEK_END, WEEK_START

SUNDAY = 6
MONDAY = 0


class TestWeekWindow:
    def test_midweek_reference(self):
        start, end = get_week_window(datetime(2026, 10, 14, 15, 30), first_weekday=SUNDAY)
        assert start == WEEK_START
        assert end == WEEK_END

    def test_window_edges_belong_to_the_week(self):
        assert get_week_window(WEEK_START, first_weekday=SUNDAY) == (WEEK_START, WEEK_END)
        assert get_week_window(WEEK_END, first_weekday=SUNDAY) == (WEEK_START, WEEK_END)

    def test_next_week_starts_after_end(self):
        start, _ = get_week_window(WEEK_END + timedelta(microseconds=1), first_weekday=SUNDAY)
        assert start == datetime(2026, 10, 18)

    def test_monday_start(self):
        start, end = get_week_window(datetime(2026, 10, 14, 15, 30), first_weekday=MONDAY)
        assert start == datetime(2026, 10, 12)
        assert end == datetime(2026, 10, 18, 23, 59, 59, 999999)

    def test_aware_reference_is_converted_to_utc(self):
        # Sunday 01:00 at +05:00 is still Saturday in UTC
        reference = datetime(2026, 10, 11, 1, 0, tzinfo=timezone(timedelta(hours=5)))
        start, end = get_week_window(reference, first_weekday=SUNDAY)
        assert start == datetime(2026, 10, 4)
        assert start.tzinfo is None and end.tzinfo is None

    def test_defaults_to_configured_sunday(self):
        start, _ = get_week_window(datetime(2026, 10, 14, 15, 30))
        assert start == WEEK_START

    def test_current_week_contains_now(self):
        now = as_naive_utc(datetime.now(timezone.utc))
        start, end = get_week_window()
        assert start <= now <= end
