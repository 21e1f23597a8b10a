from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from needled.models.enums import InjectionStatus
from needled.services.injection_week import (
    days_since_anchor,
    days_until_anchor,
    in_week,
    is_anchor_day,
)


@dataclass(frozen=True)
class InjectionStatusResult:
    status: InjectionStatus
    days_until: int
    days_overdue: int


def resolve_status(
    today: datetime,
    anchor_day: int,
    injection_this_cycle: Optional[datetime],
) -> InjectionStatusResult:
    """Classify ``today`` relative to the user's weekly injection.

    ``injection_this_cycle`` is the date of the latest injection the caller
    found for the current cycle (or None). A date outside the cycle is ignored.

    Off the anchor day the week is split by distance: while the next
    injection day is at least as close as the previous one the injection is
    ``upcoming``; otherwise the missed one is ``overdue``.
    """
    if injection_this_cycle is not None and in_week(injection_this_cycle, today, anchor_day):
        return InjectionStatusResult(InjectionStatus.DONE, days_until=0, days_overdue=0)

    if is_anchor_day(today, anchor_day):
        return InjectionStatusResult(InjectionStatus.DUE, days_until=0, days_overdue=0)

    days_until = days_until_anchor(today, anchor_day)
    days_since = days_since_anchor(today, anchor_day)

    if days_until <= days_since:
        return InjectionStatusResult(InjectionStatus.UPCOMING, days_until=days_until, days_overdue=0)
    return InjectionStatusResult(InjectionStatus.OVERDUE, days_until=0, days_overdue=days_since)
