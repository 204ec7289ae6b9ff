"""Streak calculator — current and longest runs of consecutive days.

Both functions are pure. `today` is always passed in; nothing here reads
the clock.
"""

from collections.abc import Iterable
from datetime import date, datetime, timedelta

from habitcore.clock import local_date


def _distinct_days(completions: Iterable[datetime | date]) -> set[date]:
    return {local_date(c) for c in completions}


def current_streak(completions: Iterable[datetime | date], today: date) -> int:
    """Consecutive completed days ending today, or yesterday if today is still open.

    Zero once both today and yesterday were missed, even if the day before
    was completed.
    """
    days = {d for d in _distinct_days(completions) if d <= today}
    if not days:
        return 0

    yesterday = today - timedelta(days=1)
    if max(days) < yesterday:
        return 0

    streak = 0
    check = today if today in days else yesterday
    while check in days:
        streak += 1
        check -= timedelta(days=1)
    return streak


def longest_streak(completions: Iterable[datetime | date]) -> int:
    """Longest run of consecutive days ever; 1 for a single completion, 0 for none."""
    days = sorted(_distinct_days(completions))
    if not days:
        return 0

    longest = run = 1
    for prev, cur in zip(days, days[1:]):
        gap = (cur - prev).days
        if gap == 1:
            run += 1
            longest = max(longest, run)
        elif gap != 0:
            run = 1
    return longest
