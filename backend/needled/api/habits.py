import datetime as dt
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from needled.api.deps import resolve_log_date
from needled.api.schemas import DailyHabitOut
from needled.core.clock import get_now
from needled.core.db import get_db_session
from needled.core.security import get_current_user
from needled.models import DailyHabit, User
from needled.models.enums import HabitType
from needled.services.habits import week_dates

router = APIRouter()


class HabitToggle(BaseModel):
    habit: HabitType
    value: bool
    date: Optional[dt.date] = None


async def _habit_for_day(db: AsyncSession, user_id: str, day: dt.date) -> Optional[DailyHabit]:
    stmt = select(DailyHabit).where(DailyHabit.user_id == user_id, DailyHabit.date == day)
    return (await db.execute(stmt)).scalar_one_or_none()


@router.get("", response_model=list[DailyHabitOut], summary="List habits in a date range")
async def list_habits(
    start_date: Optional[dt.date] = Query(None),
    end_date: Optional[dt.date] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    now: datetime = Depends(get_now),
):
    week = week_dates(now.date())
    start = start_date or week[0]
    end = end_date or week[-1]
    if start > end:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="start_date must not be after end_date")

    stmt = (
        select(DailyHabit)
        .where(DailyHabit.user_id == user.id, DailyHabit.date >= start, DailyHabit.date <= end)
        .order_by(DailyHabit.date.asc())
    )
    return (await db.execute(stmt)).scalars().all()


@router.get("/today", response_model=DailyHabitOut, summary="Today's habits")
async def get_today(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    now: datetime = Depends(get_now),
):
    habit = await _habit_for_day(db, user.id, now.date())
    if habit is None:
        habit = DailyHabit(user_id=user.id, date=now.date(), water=False, nutrition=False, exercise=False)
        db.add(habit)
        await db.commit()
    return habit


@router.patch("/today", response_model=DailyHabitOut, summary="Toggle a habit")
async def toggle_habit(
    payload: HabitToggle,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    now: datetime = Depends(get_now),
):
    day = resolve_log_date(payload.date, now) or now.date()

    habit = await _habit_for_day(db, user.id, day)
    if habit is None:
        habit = DailyHabit(user_id=user.id, date=day, water=False, nutrition=False, exercise=False)
        db.add(habit)
    setattr(habit, payload.habit.value, payload.value)

    await db.commit()
    return habit
