import datetime as dt
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from needled.api.weigh_ins import has_weighed_in_this_week
from needled.core.clock import get_now
from needled.core.db import get_db_session
from needled.core.security import get_current_user
from needled.models import DailyHabit, User, WeighIn
from needled.services.habits import HABITS_PER_DAY, completed_count, week_dates, weekly_completion_percent
from needled.services.progress import calculate_goal_progress, round_half_up
from needled.services.trends import clamp_percent, week_change

router = APIRouter()


class DashboardUser(BaseModel):
    id: str
    name: str
    start_weight: float
    goal_weight: Optional[float] = None
    weight_unit: str
    medication: str
    created_at: datetime


class DashboardWeight(BaseModel):
    current_weight: Optional[float] = None
    previous_weight: Optional[float] = None
    week_change: Optional[float] = None
    total_lost: Optional[float] = None
    progress_percent: Optional[float] = None
    weigh_in_count: int
    can_weigh_in: bool


class DashboardHabits(BaseModel):
    weekly_completion_percent: int
    today_completed: int
    today_total: int = HABITS_PER_DAY


class DashboardJourney(BaseModel):
    week_number: int
    start_date: datetime


class DashboardResponse(BaseModel):
    user: DashboardUser
    weight: DashboardWeight
    habits: DashboardHabits
    journey: DashboardJourney


def journey_week_number(created_at: datetime, now: datetime) -> int:
    """1-based Monday-to-Monday week count since signup."""
    signup_monday = week_dates(created_at.date())[0]
    current_monday = week_dates(now.date())[0]
    return max(1, (current_monday - signup_monday).days // 7 + 1)


def progress_percent(start: float, current: Optional[float], goal: Optional[float]) -> Optional[float]:
    if goal is None:
        return None
    if current is None:
        return 0.0
    return clamp_percent(calculate_goal_progress(start, current, goal))


@router.get("", response_model=DashboardResponse, summary="Home dashboard")
async def dashboard(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    now: datetime = Depends(get_now),
):
    recent = (
        await db.execute(
            select(WeighIn).where(WeighIn.user_id == user.id).order_by(WeighIn.date.desc()).limit(2)
        )
    ).scalars().all()
    weigh_in_count = (
        await db.execute(select(func.count(WeighIn.id)).where(WeighIn.user_id == user.id))
    ).scalar_one()

    current = recent[0].weight if recent else None
    previous = recent[1].weight if len(recent) > 1 else None

    today: dt.date = now.date()
    week = week_dates(today)
    habits = (
        await db.execute(
            select(DailyHabit).where(
                DailyHabit.user_id == user.id,
                DailyHabit.date >= week[0],
                DailyHabit.date <= today,
            )
        )
    ).scalars().all()
    today_habit = next((h for h in habits if h.date == today), None)

    return DashboardResponse(
        user=DashboardUser.model_validate(user, from_attributes=True),
        weight=DashboardWeight(
            current_weight=current,
            previous_weight=previous,
            week_change=week_change(current, previous) if current is not None else None,
            total_lost=round_half_up(user.start_weight - current, 1) if current is not None else None,
            progress_percent=progress_percent(user.start_weight, current, user.goal_weight),
            weigh_in_count=weigh_in_count,
            can_weigh_in=not await has_weighed_in_this_week(db, user.id, now),
        ),
        habits=DashboardHabits(
            weekly_completion_percent=weekly_completion_percent(habits, week[0], today),
            today_completed=completed_count(today_habit),
        ),
        journey=DashboardJourney(
            week_number=journey_week_number(user.created_at, now),
            start_date=user.created_at,
        ),
    )
