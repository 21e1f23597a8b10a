import datetime as dt
from dataclasses import asdict
from datetime import datetime, time, timedelta
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from needled.api.deps import get_owned, logged_at
from needled.api.schemas import WeighInOut
from needled.core.clock import get_now
from needled.core.db import get_db_session
from needled.core.security import get_current_user
from needled.models import Injection, User, WeighIn
from needled.services.habits import week_dates
from needled.services.progress import compute_stats, dosage_at, dosage_changes, range_start
from needled.services.trends import total_change, week_change

router = APIRouter()

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class WeighInCreate(BaseModel):
    weight: float = Field(ge=40, le=300)
    date: Optional[dt.date] = None


class WeighInUpdate(BaseModel):
    weight: Optional[float] = Field(default=None, ge=40, le=300)
    date: Optional[dt.date] = None


class LatestWeighIn(BaseModel):
    weigh_in: Optional[WeighInOut] = None
    week_change: Optional[float] = None
    total_change: Optional[float] = None
    can_weigh_in: bool


class ProgressPoint(BaseModel):
    id: str
    weight: float
    date: datetime
    dosage_mg: Optional[float] = None


class ProgressStatsOut(BaseModel):
    total_change: float
    percent_change: float
    current_bmi: Optional[float] = None
    goal_progress: Optional[float] = None
    to_goal: Optional[float] = None
    weekly_average: Optional[float] = None


class DosageChangeOut(BaseModel):
    date: datetime
    from_dosage: Optional[float] = None
    to_dosage: float


class ProgressResponse(BaseModel):
    range: str
    weigh_ins: list[ProgressPoint]
    stats: ProgressStatsOut
    dosage_changes: list[DosageChangeOut]
    start_weight: float
    goal_weight: Optional[float] = None
    weight_unit: str


async def has_weighed_in_this_week(db: AsyncSession, user_id: str, now: datetime) -> bool:
    """Weigh-ins follow the calendar week (Monday to Sunday), not the injection cycle."""
    start = datetime.combine(week_dates(now.date())[0], time.min)
    stmt = select(WeighIn.id).where(
        WeighIn.user_id == user_id,
        WeighIn.date >= start,
        WeighIn.date < start + timedelta(days=7),
    )
    return (await db.execute(stmt.limit(1))).first() is not None


@router.get("", response_model=list[WeighInOut], summary="List weigh-ins")
async def list_weigh_ins(
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    stmt = (
        select(WeighIn)
        .where(WeighIn.user_id == user.id)
        .order_by(WeighIn.date.desc())
        .limit(limit)
        .offset(offset)
    )
    return (await db.execute(stmt)).scalars().all()


@router.post("", response_model=WeighInOut, status_code=status.HTTP_201_CREATED, summary="Log weigh-in")
async def create_weigh_in(
    payload: WeighInCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    now: datetime = Depends(get_now),
):
    weigh_in = WeighIn(user_id=user.id, weight=payload.weight, date=logged_at(payload.date, now))
    db.add(weigh_in)
    await db.commit()
    return weigh_in


@router.get("/latest", response_model=LatestWeighIn, summary="Latest weigh-in")
async def latest_weigh_in(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    now: datetime = Depends(get_now),
):
    stmt = select(WeighIn).where(WeighIn.user_id == user.id).order_by(WeighIn.date.desc()).limit(2)
    recent = (await db.execute(stmt)).scalars().all()
    can_weigh_in = not await has_weighed_in_this_week(db, user.id, now)

    if not recent:
        return LatestWeighIn(can_weigh_in=can_weigh_in)

    latest = recent[0]
    previous = recent[1].weight if len(recent) > 1 else None
    return LatestWeighIn(
        weigh_in=WeighInOut.model_validate(latest),
        week_change=week_change(latest.weight, previous),
        total_change=total_change(latest.weight, user.start_weight),
        can_weigh_in=can_weigh_in,
    )


@router.get("/progress", response_model=ProgressResponse, summary="Progress chart data")
async def weigh_in_progress(
    range_key: Literal["1M", "3M", "6M", "ALL"] = Query("ALL", alias="range"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    now: datetime = Depends(get_now),
):
    since = range_start(range_key, now)

    stmt = select(WeighIn).where(WeighIn.user_id == user.id)
    if since is not None:
        stmt = stmt.where(WeighIn.date >= since)
    weigh_ins = (await db.execute(stmt.order_by(WeighIn.date.asc()))).scalars().all()

    inj_stmt = select(Injection).where(Injection.user_id == user.id).order_by(Injection.date.asc())
    injections = (await db.execute(inj_stmt)).scalars().all()

    stats = compute_stats(weigh_ins, user)
    return ProgressResponse(
        range=range_key,
        weigh_ins=[
            ProgressPoint(id=w.id, weight=w.weight, date=w.date, dosage_mg=dosage_at(w.date, injections))
            for w in weigh_ins
        ],
        stats=ProgressStatsOut(**asdict(stats)),
        dosage_changes=[DosageChangeOut(**asdict(c)) for c in dosage_changes(injections, since)],
        start_weight=user.start_weight,
        goal_weight=user.goal_weight,
        weight_unit=user.weight_unit,
    )


@router.patch("/{weigh_in_id}", response_model=WeighInOut, summary="Edit weigh-in")
async def update_weigh_in(
    weigh_in_id: str,
    payload: WeighInUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    now: datetime = Depends(get_now),
):
    weigh_in = await get_owned(db, WeighIn, weigh_in_id, user, "Weigh-in")
    if payload.weight is not None:
        weigh_in.weight = payload.weight
    if payload.date is not None:
        weigh_in.date = logged_at(payload.date, now)
    await db.commit()
    return weigh_in


@router.delete("/{weigh_in_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete weigh-in")
async def delete_weigh_in(
    weigh_in_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    weigh_in = await get_owned(db, WeighIn, weigh_in_id, user, "Weigh-in")
    await db.delete(weigh_in)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
