from datetime import date, timedelta
from typing import Optional, Protocol

from needled.models.enums import HabitType
from needled.services.injection_week import anchor_weekday
from needled.services.progress import round_half_up

HABITS_PER_DAY = len(HabitType)


class HabitDay(Protocol):
    water: bool
    nutrition: bool
    exercise: bool


def week_dates(day: date) -> list[date]:
    """The Monday-to-Sunday week containing ``day``."""
    monday = day - timedelta(days=anchor_weekday(day))
    return [monday + timedelta(days=i) for i in range(7)]


def completed_count(habit: Optional[HabitDay]) -> int:
    if habit is None:
        return 0
    return int(habit.water) + int(habit.nutrition) + int(habit.exercise)


def is_perfect_day(habit: Optional[HabitDay]) -> bool:
    return completed_count(habit) == HABITS_PER_DAY


def has_any_habit(habit: Optional[HabitDay]) -> bool:
    return completed_count(habit) > 0


def weekly_completion_percent(habits: list[HabitDay], week_start: date, today: date) -> int:
    """Share of habits ticked so far this week, counting days up to today."""
    days_so_far = (today - week_start).days + 1
    possible = max(days_so_far, 0) * HABITS_PER_DAY
    if possible <= 0:
        return 0
    done = sum(completed_count(h) for h in habits)
    return int(round_half_up(done / possible * 100, 0))
