"""Weight progress statistics for the progress chart.

Everything here is pure: callers fetch weigh-ins/injections and pass them
in, already ordered by date ascending.
"""
import math
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Optional, Protocol, Sequence

LBS_TO_KG = 0.453592
SECONDS_PER_DAY = 86400

RANGE_DAYS = {"1M": 30, "3M": 90, "6M": 180}
VALID_RANGES = (*RANGE_DAYS.keys(), "ALL")


class WeightPoint(Protocol):
    date: datetime
    weight: float


class DosagePoint(Protocol):
    date: datetime
    dosage_mg: Optional[float]


class ProgressProfile(Protocol):
    start_weight: float
    goal_weight: Optional[float]
    height: Optional[int]
    weight_unit: str


@dataclass(frozen=True)
class ProgressStats:
    total_change: float
    percent_change: float
    current_bmi: Optional[float]
    goal_progress: Optional[float]
    to_goal: Optional[float]
    weekly_average: Optional[float]


@dataclass(frozen=True)
class DosageChange:
    date: datetime
    from_dosage: Optional[float]
    to_dosage: float


EMPTY_STATS = ProgressStats(
    total_change=0,
    percent_change=0,
    current_bmi=None,
    goal_progress=None,
    to_goal=None,
    weekly_average=None,
)


def round_half_up(value: float, places: int) -> float:
    """Half-up rounding, so 0.25 -> 0.3 rather than banker's 0.2."""
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


def to_kg(weight: float, unit: str) -> float:
    return weight * LBS_TO_KG if unit == "lbs" else weight


def calculate_bmi(weight: float, height_cm: Optional[int], unit: str) -> Optional[float]:
    if not height_cm:
        return None
    height_m = height_cm / 100
    return round_half_up(to_kg(weight, unit) / (height_m * height_m), 1)


def calculate_goal_progress(start: float, current: float, goal: Optional[float]) -> Optional[float]:
    """Percent of the planned loss achieved. Not clamped: >100 means the goal
    was passed, negative means weight went up."""
    if goal is None:
        return None
    target_loss = start - goal
    if target_loss <= 0:
        return None
    return round_half_up((start - current) / target_loss * 100, 1)


def compute_stats(weigh_ins: Sequence[WeightPoint], profile: ProgressProfile) -> ProgressStats:
    if not weigh_ins:
        return EMPTY_STATS

    first, last = weigh_ins[0], weigh_ins[-1]
    total_change = last.weight - first.weight
    percent_change = total_change / first.weight * 100

    to_goal = None
    if profile.goal_weight is not None:
        to_goal = round_half_up(last.weight - profile.goal_weight, 1)

    weekly_average = None
    days_between = (last.date - first.date).total_seconds() / SECONDS_PER_DAY
    if days_between >= 7:
        weekly_average = round_half_up(total_change / (days_between / 7), 2)

    return ProgressStats(
        total_change=round_half_up(total_change, 1),
        percent_change=round_half_up(percent_change, 2),
        current_bmi=calculate_bmi(last.weight, profile.height, profile.weight_unit),
        goal_progress=calculate_goal_progress(profile.start_weight, last.weight, profile.goal_weight),
        to_goal=to_goal,
        weekly_average=weekly_average,
    )


def range_start(range_key: str, now: datetime) -> Optional[datetime]:
    """Midnight ``N`` days before ``now`` for 1M/3M/6M, None for ALL."""
    if range_key == "ALL":
        return None
    start = now - timedelta(days=RANGE_DAYS[range_key])
    return datetime.combine(start.date(), time.min)


def dosage_at(moment: datetime, injections: Sequence[DosagePoint]) -> Optional[float]:
    """Dosage of the latest injection on or before ``moment``."""
    for injection in reversed(injections):
        if injection.date <= moment and injection.dosage_mg:
            return float(injection.dosage_mg)
    return None


def dosage_changes(
    injections: Sequence[DosagePoint],
    since: Optional[datetime] = None,
) -> list[DosageChange]:
    """Dosage transitions among ``injections`` on or after ``since``.

    The dosage active before ``since`` seeds the first ``from_dosage`` so a
    range that opens mid-titration does not report a spurious start.
    """
    with_dosage = [inj for inj in injections if inj.dosage_mg]
    last_dosage: Optional[float] = None
    in_range = with_dosage

    if since is not None:
        before = [inj for inj in with_dosage if inj.date < since]
        if before:
            last_dosage = float(before[-1].dosage_mg)
        in_range = [inj for inj in with_dosage if inj.date >= since]

    changes: list[DosageChange] = []
    for injection in in_range:
        current = float(injection.dosage_mg)
        if current != last_dosage:
            changes.append(DosageChange(date=injection.date, from_dosage=last_dosage, to_dosage=current))
            last_dosage = current
    return changes
