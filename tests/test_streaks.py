"""Tests for the streak calculator."""

from datetime import date, datetime, timedelta

import pytest

from habitcore.clock import TZ
from habitcore.streaks import current_streak, longest_streak

TODAY = date(2026, 3, 15)


def days_ago(*offsets: int) -> list[date]:
    return [TODAY - timedelta(days=n) for n in offsets]


class TestCurrentStreak:
    def test_no_completions(self):
        assert current_streak([], TODAY) == 0

    def test_today_and_yesterday(self):
        assert current_streak(days_ago(1, 0), TODAY) == 2

    def test_only_two_days_ago_is_broken(self):
        assert current_streak(days_ago(2), TODAY) == 0

    def test_alive_pending_today(self):
        # yesterday and the day before, nothing yet today
        assert current_streak(days_ago(1, 2), TODAY) == 2

    def test_stops_at_first_gap(self):
        assert current_streak(days_ago(0, 1, 2, 4, 5, 6, 7), TODAY) == 3

    def test_today_only(self):
        assert current_streak(days_ago(0), TODAY) == 1

    def test_duplicate_days_count_once(self):
        assert current_streak(days_ago(0, 0, 1, 1), TODAY) == 2

    def test_unordered_input(self):
        assert current_streak(days_ago(3, 0, 2, 1), TODAY) == 4

    def test_datetimes_are_normalized_to_days(self):
        stamps = [
            datetime(2026, 3, 15, 7, 30, tzinfo=TZ),
            datetime(2026, 3, 14, 23, 59, tzinfo=TZ),
            datetime(2026, 3, 13, 0, 1, tzinfo=TZ),
        ]
        assert current_streak(stamps, TODAY) == 3

    def test_future_days_ignored(self):
        assert current_streak(days_ago(-1, 0, 1), TODAY) == 2


class TestLongestStreak:
    def test_no_completions(self):
        assert longest_streak([]) == 0

    def test_single_completion(self):
        assert longest_streak([date(2026, 1, 5)]) == 1

    def test_two_runs(self):
        dates = [date(2026, 1, d) for d in (1, 2, 3, 10, 11)]
        assert longest_streak(dates) == 3

    def test_duplicates_do_not_break_run(self):
        dates = [date(2026, 1, d) for d in (1, 2, 2, 3)]
        assert longest_streak(dates) == 3

    def test_reference_free(self):
        # a long run years ago still counts
        dates = [date(2020, 5, 1) + timedelta(days=i) for i in range(10)]
        assert longest_streak(dates) == 10

    def test_unordered_input(self):
        dates = [date(2026, 1, d) for d in (11, 3, 10, 1, 2)]
        assert longest_streak(dates) == 3

    def test_across_month_boundary(self):
        dates = [date(2026, 1, 31), date(2026, 2, 1), date(2026, 2, 2)]
        assert longest_streak(dates) == 3


@pytest.mark.parametrize("offsets", [
    (0,), (1,), (2,), (0, 1), (0, 2, 3, 4), (1, 2, 3, 9, 10, 11, 12, 13),
    (0, 1, 2, 3, 4, 5), (5, 6, 7), (0, 10, 11, 12),
])
def test_longest_never_below_current(offsets):
    dates = days_ago(*offsets)
    assert longest_streak(dates) >= current_streak(dates, TODAY)
