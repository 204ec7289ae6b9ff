"""Completion rate calculator — share of recent days with a completion."""

from collections.abc import Iterable
from datetime import date, datetime, timedelta

from habitcore.clock import local_date
from habitcore.config import COMPLETION_RATE_WINDOW_DAYS


def completion_rate(completions: Iterable[datetime | date], today: date,
                    window_days: int = COMPLETION_RATE_WINDOW_DAYS) -> int:
    """Percentage (0–100) of the trailing window's days that were completed.

    Counts distinct local days from `today - window_days` through `today`,
    divided by `window_days`. Upstream duplicates on one day count once.
    """
    if window_days <= 0:
        raise ValueError("window_days must be positive")
    start = today - timedelta(days=window_days)
    days = {d for d in (local_date(c) for c in completions) if start <= d <= today}
    if not days:
        return 0
    # rounds half up
    return min(100, int(len(days) * 100 / window_days + 0.5))
