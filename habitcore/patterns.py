"""Pattern aggregator — when in the week and day a habit gets done.

Runs on demand for analysis only; its output is never part of the stored
progress snapshot.
"""

from collections import Counter
from collections.abc import Iterable
from datetime import datetime

from habitcore.clock import to_local

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def day_of_week_stats(timestamps: Iterable[datetime]) -> dict[str, int]:
    """Weekday name -> completion count. Weekdays with no completions are omitted."""
    counts = Counter(WEEKDAYS[to_local(t).weekday()] for t in timestamps)
    return {day: counts[day] for day in WEEKDAYS if counts[day]}


def hour_of_day_stats(timestamps: Iterable[datetime]) -> dict[int, int]:
    """Local hour (0–23) -> completion count, ascending by hour."""
    counts = Counter(to_local(t).hour for t in timestamps)
    return dict(sorted(counts.items()))


def best_day(day_stats: dict[str, int]) -> str | None:
    """Most frequent weekday; ties go to the earliest day Monday→Sunday.

    None when there is nothing to rank.
    """
    if not day_stats:
        return None
    return max(WEEKDAYS, key=lambda d: (day_stats.get(d, 0), -WEEKDAYS.index(d)))


def best_hour(hour_stats: dict[int, int]) -> int | None:
    """Most frequent hour; ties go to the lowest hour. None when empty."""
    if not hour_stats:
        return None
    return max(hour_stats, key=lambda h: (hour_stats[h], -h))


def aggregate(timestamps: Iterable[datetime]) -> dict:
    """Both histograms plus their arg-max values."""
    stamps = list(timestamps)
    days = day_of_week_stats(stamps)
    hours = hour_of_day_stats(stamps)
    return {
        "day_of_week_stats": days,
        "hour_of_day_stats": hours,
        "best_day": best_day(days),
        "best_hour": best_hour(hours),
    }
