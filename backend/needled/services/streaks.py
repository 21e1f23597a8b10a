from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Mapping

from needled.services.habits import HabitDay, is_perfect_day

MIN_STREAK_LENGTH = 2


@dataclass
class StreakInfo:
    current_streak: int = 0
    best_streak: int = 0
    # date -> position inside its streak (1, 2, 3...)
    streak_day_numbers: dict[date, int] = field(default_factory=dict)


def _runs(days: list[date], habits: Mapping[date, HabitDay]) -> list[list[date]]:
    """Consecutive runs of perfect days, keeping only runs long enough to count."""
    runs: list[list[date]] = []
    current: list[date] = []
    for day in days:
        if not is_perfect_day(habits[day]):
            current = []
            continue
        if current and day - current[-1] != timedelta(days=1):
            current = []
        if not current:
            runs.append(current)
        current.append(day)
    return [run for run in runs if len(run) >= MIN_STREAK_LENGTH]


def calculate_streaks(habits: Mapping[date, HabitDay], today: date) -> StreakInfo:
    """Streaks of perfect days (all habits ticked).

    A streak needs at least two consecutive perfect days. The current streak
    is the one ending today or yesterday.
    """
    info = StreakInfo()
    if not habits:
        return info

    runs = _runs(sorted(habits), habits)
    yesterday = today - timedelta(days=1)

    for run in runs:
        info.best_streak = max(info.best_streak, len(run))
        for position, day in enumerate(run, start=1):
            info.streak_day_numbers[day] = position
        if run[-1] in (today, yesterday) and not info.current_streak:
            info.current_streak = len(run)

    return info
