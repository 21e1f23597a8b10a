"""Anchor-aligned week arithmetic.

An injection week (cycle) starts at midnight on the user's injection day and
ends at 23:59:59 the day before the next injection day. Injection days use
0 = Monday .. 6 = Sunday.
"""
from datetime import date, datetime, time, timedelta
from typing import Union

DateLike = Union[date, datetime]

DAYS_IN_WEEK = 7
WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def anchor_weekday(value: DateLike) -> int:
    """Day of week of ``value`` in the injection-day convention (0 = Monday).

    Every weekday lookup in the service goes through here.
    """
    return value.weekday()


def _start_of_day(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        return datetime.combine(value.date(), time.min, tzinfo=value.tzinfo)
    return datetime.combine(value, time.min)


def days_since_anchor(reference: DateLike, anchor_day: int) -> int:
    """Days elapsed since the most recent anchor day (0 on the anchor day)."""
    return (anchor_weekday(reference) - anchor_day) % DAYS_IN_WEEK


def days_until_anchor(reference: DateLike, anchor_day: int) -> int:
    """Days until the next anchor day (0 on the anchor day)."""
    return (anchor_day - anchor_weekday(reference)) % DAYS_IN_WEEK


def is_anchor_day(reference: DateLike, anchor_day: int) -> bool:
    return anchor_weekday(reference) == anchor_day


def week_start(reference: DateLike, anchor_day: int) -> datetime:
    return _start_of_day(reference) - timedelta(days=days_since_anchor(reference, anchor_day))


def week_end(reference: DateLike, anchor_day: int) -> datetime:
    last_day = week_start(reference, anchor_day) + timedelta(days=DAYS_IN_WEEK - 1)
    return last_day.replace(hour=23, minute=59, second=59, microsecond=0)


def in_week(moment: DateLike, reference: DateLike, anchor_day: int) -> bool:
    """Whether ``moment`` falls inside the cycle containing ``reference``."""
    if not isinstance(moment, datetime):
        moment = _start_of_day(moment)
    start = week_start(reference, anchor_day)
    # Half-open so sub-second timestamps after 23:59:59 still belong to the cycle
    return start <= moment < start + timedelta(days=DAYS_IN_WEEK)
