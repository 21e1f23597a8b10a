import datetime as dt
from datetime import datetime, time, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from needled.core.clock import get_now
from needled.core.db import get_db_session
from needled.core.security import get_current_user
from needled.models import DailyHabit, Injection, User, WeighIn
from needled.services.streaks import calculate_streaks
from needled.services.trends import week_change

router = APIRouter()


class CalendarHabit(BaseModel):
    date: dt.date
    water: bool
    nutrition: bool
    exercise: bool


class CalendarWeighIn(BaseModel):
    date: dt.date
    weight: float


class CalendarInjection(BaseModel):
    date: dt.date
    site: str


class StreakSummary(BaseModel):
    current_streak: int
    best_streak: int
    # Position of each month day inside its streak, keyed by ISO date
    streak_days: dict[str, int]


class CalendarMonthResponse(BaseModel):
    year: int
    month: int
    habits: list[CalendarHabit]
    weigh_ins: list[CalendarWeighIn]
    injections: list[CalendarInjection]
    streaks: StreakSummary


class DayHabit(BaseModel):
    water: bool
    nutrition: bool
    exercise: bool


class DayWeighIn(BaseModel):
    weight: float
    change: Optional[float] = None


class DayInjection(BaseModel):
    site: str
    dose_number: Optional[int] = None
    dosage_mg: Optional[float] = None
    notes: Optional[str] = None


class CalendarDayResponse(BaseModel):
    date: dt.date
    habit: Optional[DayHabit] = None
    weigh_in: Optional[DayWeighIn] = None
    injection: Optional[DayInjection] = None


def _month_bounds(year: int, month: int) -> tuple[dt.date, dt.date]:
    first = dt.date(year, month, 1)
    next_first = (first.replace(day=28) + timedelta(days=4)).replace(day=1)
    return first, next_first


@router.get("/day/{day}", response_model=CalendarDayResponse, summary="Calendar day detail")
async def calendar_day(
    day: dt.date,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    start = datetime.combine(day, time.min)
    end = start + timedelta(days=1)

    habit = (
        await db.execute(select(DailyHabit).where(DailyHabit.user_id == user.id, DailyHabit.date == day))
    ).scalar_one_or_none()

    weigh_in = (
        await db.execute(
            select(WeighIn)
            .where(WeighIn.user_id == user.id, WeighIn.date >= start, WeighIn.date < end)
            .order_by(WeighIn.date.desc())
            .limit(1)
        )
    ).scalar_one_or_none()

    day_weigh_in = None
    if weigh_in is not None:
        previous = (
            await db.execute(
                select(WeighIn.weight)
                .where(WeighIn.user_id == user.id, WeighIn.date < weigh_in.date)
                .order_by(WeighIn.date.desc())
                .limit(1)
            )
        ).scalar_one_or_none()
        day_weigh_in = DayWeighIn(weight=weigh_in.weight, change=week_change(weigh_in.weight, previous))

    injection = (
        await db.execute(
            select(Injection)
            .where(Injection.user_id == user.id, Injection.date >= start, Injection.date < end)
            .order_by(Injection.date.desc())
            .limit(1)
        )
    ).scalar_one_or_none()

    return CalendarDayResponse(
        date=day,
        habit=DayHabit(water=habit.water, nutrition=habit.nutrition, exercise=habit.exercise) if habit else None,
        weigh_in=day_weigh_in,
        injection=(
            DayInjection(
                site=injection.site,
                dose_number=injection.dose_number,
                dosage_mg=injection.dosage_mg,
                notes=injection.notes,
            )
            if injection
            else None
        ),
    )


@router.get("/{year}/{month}", response_model=CalendarMonthResponse, summary="Calendar month")
async def calendar_month(
    year: int = Path(ge=1900, le=2100),
    month: int = Path(ge=1, le=12),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    now: datetime = Depends(get_now),
):
    first, next_first = _month_bounds(year, month)
    start, end = datetime.combine(first, time.min), datetime.combine(next_first, time.min)

    # Streaks can cross month boundaries, so they are computed over every habit row
    all_habits = (
        await db.execute(
            select(DailyHabit)
            .where(DailyHabit.user_id == user.id)
            .order_by(DailyHabit.date.asc())
        )
    ).scalars().all()
    month_habits = [h for h in all_habits if first <= h.date < next_first]

    weigh_ins = (
        await db.execute(
            select(WeighIn)
            .where(WeighIn.user_id == user.id, WeighIn.date >= start, WeighIn.date < end)
            .order_by(WeighIn.date.asc())
        )
    ).scalars().all()
    injections = (
        await db.execute(
            select(Injection)
            .where(Injection.user_id == user.id, Injection.date >= start, Injection.date < end)
            .order_by(Injection.date.asc())
        )
    ).scalars().all()

    streaks = calculate_streaks({h.date: h for h in all_habits}, now.date())

    return CalendarMonthResponse(
        year=year,
        month=month,
        habits=[
            CalendarHabit(date=h.date, water=h.water, nutrition=h.nutrition, exercise=h.exercise)
            for h in month_habits
        ],
        weigh_ins=[CalendarWeighIn(date=w.date.date(), weight=w.weight) for w in weigh_ins],
        injections=[CalendarInjection(date=i.date.date(), site=i.site) for i in injections],
        streaks=StreakSummary(
            current_streak=streaks.current_streak,
            best_streak=streaks.best_streak,
            streak_days={
                day.isoformat(): position
                for day, position in streaks.streak_day_numbers.items()
                if first <= day < next_first
            },
        ),
    )
