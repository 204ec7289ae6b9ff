"""Local-time helpers.

The user's calendar day is defined by TIMEZONE_OFFSET_HOURS. Naive
datetimes are taken to already be in local time.
"""

from datetime import date, datetime, timezone, timedelta

from habitcore.config import TIMEZONE_OFFSET_HOURS

TZ = timezone(timedelta(hours=TIMEZONE_OFFSET_HOURS))


def now() -> datetime:
    """The real clock. Only orchestration code calls this."""
    return datetime.now(TZ)


def to_local(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=TZ)
    return moment.astimezone(TZ)


def local_date(moment: datetime | date) -> date:
    """Strip time-of-day, in local time."""
    if isinstance(moment, datetime):
        return to_local(moment).date()
    return moment


def date_key(moment: datetime | date) -> str:
    """YYYY-MM-DD uniqueness key for a completion."""
    return local_date(moment).isoformat()
