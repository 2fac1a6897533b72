"""
Calendar helpers shared by the aggregator, scorer and workload analyzer.
"""

from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterator, Optional

import pytz


def resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """Return the pytz zone for an IANA name, or None when no zone is configured."""
    if not name:
        return None
    return pytz.timezone(name)


def to_local(moment: datetime, tz: Optional[tzinfo]) -> datetime:
    """Express an aware datetime in the planning timezone. Naive datetimes pass through."""
    if tz is None or moment.tzinfo is None:
        return moment
    return moment.astimezone(tz)


def local_date(moment: datetime, tz: Optional[tzinfo]) -> date:
    return to_local(moment, tz).date()


def last_local_day(range_end: datetime, tz: Optional[tzinfo]) -> date:
    """Last calendar day inside a half-open range. A range ending at midnight stops the day before."""
    return local_date(range_end - timedelta(microseconds=1), tz)


def combine_local(day: date, at: time, tz: Optional[tzinfo], fallback: Optional[tzinfo] = None) -> datetime:
    """Build the datetime for a wall-clock time on a given day."""
    if tz is not None:
        return tz.localize(datetime.combine(day, at))
    return datetime.combine(day, at, tzinfo=fallback)


def weekday_index(day: date) -> int:
    """Weekday with 0 = Sunday ... 6 = Saturday, the convention used by preferences."""
    return (day.weekday() + 1) % 7


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def minutes_of_day(moment: datetime) -> int:
    return moment.hour * 60 + moment.minute


def period_of_day(moment: datetime) -> str:
    if moment.hour < 12:
        return "morning"
    if moment.hour < 17:
        return "afternoon"
    return "evening"
