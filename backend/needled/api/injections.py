import datetime as dt
import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from needled.api.deps import get_owned, logged_at
from needled.api.schemas import InjectionOut
from needled.core.clock import get_now
from needled.core.db import get_db_session
from needled.core.security import get_current_user
from needled.models import Injection, User
from needled.models.enums import InjectionSite, InjectionStatus
from needled.services.injection_status import resolve_status
from needled.services.injection_week import DAYS_IN_WEEK, WEEKDAY_NAMES, week_end, week_start
from needled.services.pen_dosing import PenSettings, pen_status
from needled.services.rotation import site_label

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_LIMIT = 10
MAX_LIMIT = 100
NOTES_MAX_LENGTH = 500


class InjectionCreate(BaseModel):
    site: Optional[InjectionSite] = None
    dose_number: Optional[int] = Field(default=None, ge=1)
    dosage_mg: Optional[float] = Field(default=None, gt=0, le=50)
    notes: Optional[str] = Field(default=None, max_length=NOTES_MAX_LENGTH)
    date: Optional[dt.date] = None


class InjectionUpdate(BaseModel):
    site: Optional[InjectionSite] = None
    dose_number: Optional[int] = Field(default=None, ge=1)
    dosage_mg: Optional[float] = Field(default=None, gt=0, le=50)
    notes: Optional[str] = Field(default=None, max_length=NOTES_MAX_LENGTH)
    date: Optional[dt.date] = None


class InjectionStatusResponse(BaseModel):
    status: InjectionStatus
    days_until: int
    days_overdue: int
    injection_day: int
    injection_day_name: str
    week_start: datetime
    week_end: datetime
    last_injection: Optional[InjectionOut] = None
    suggested_site: InjectionSite
    suggested_site_label: str
    current_dose: Optional[int] = None
    next_dose: int
    doses_remaining: int
    doses_per_pen: int
    tracks_golden_dose: bool
    is_golden_dose_available: bool
    is_on_golden_dose: bool
    current_dosage: Optional[float] = None


async def _latest_injection(db: AsyncSession, user_id: str) -> Optional[Injection]:
    stmt = select(Injection).where(Injection.user_id == user_id).order_by(Injection.date.desc()).limit(1)
    return (await db.execute(stmt)).scalar_one_or_none()


async def _injection_in_cycle(
    db: AsyncSession,
    user: User,
    moment: datetime,
    exclude_id: Optional[str] = None,
) -> Optional[Injection]:
    start = week_start(moment, user.injection_day)
    stmt = select(Injection).where(
        Injection.user_id == user.id,
        Injection.date >= start,
        Injection.date < start + timedelta(days=DAYS_IN_WEEK),
    )
    if exclude_id:
        stmt = stmt.where(Injection.id != exclude_id)
    return (await db.execute(stmt.order_by(Injection.date.desc()).limit(1))).scalar_one_or_none()


def _check_dose_number(dose_number: Optional[int], settings: PenSettings) -> None:
    if dose_number is not None and dose_number > settings.capacity:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Dose number must be between 1 and {settings.capacity}",
        )


@router.get("", response_model=list[InjectionOut], summary="List injections")
async def list_injections(
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    stmt = (
        select(Injection)
        .where(Injection.user_id == user.id)
        .order_by(Injection.date.desc())
        .limit(limit)
        .offset(offset)
    )
    return (await db.execute(stmt)).scalars().all()


@router.post("", response_model=InjectionOut, status_code=status.HTTP_201_CREATED, summary="Log injection")
async def create_injection(
    payload: InjectionCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    now: datetime = Depends(get_now),
):
    moment = logged_at(payload.date, now)

    if await _injection_in_cycle(db, user, moment) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="You have already logged an injection this week",
        )

    settings = PenSettings.from_user(user)
    _check_dose_number(payload.dose_number, settings)
    suggestion = pen_status(await _latest_injection(db, user.id), settings)

    injection = Injection(
        user_id=user.id,
        date=moment,
        site=(payload.site or suggestion.suggested_site).value,
        dose_number=payload.dose_number or suggestion.next_dose,
        dosage_mg=payload.dosage_mg if payload.dosage_mg is not None else user.current_dosage,
        notes=payload.notes,
    )
    db.add(injection)
    await db.commit()
    logger.info("User %s logged injection %s (dose %s)", user.id, injection.id, injection.dose_number)
    return injection


@router.get("/status", response_model=InjectionStatusResponse, summary="Injection status for this week")
async def injection_status(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    now: datetime = Depends(get_now),
):
    this_cycle = await _injection_in_cycle(db, user, now)
    result = resolve_status(now, user.injection_day, this_cycle.date if this_cycle else None)

    last = await _latest_injection(db, user.id)
    pen = pen_status(last, PenSettings.from_user(user))

    return InjectionStatusResponse(
        status=result.status,
        days_until=result.days_until,
        days_overdue=result.days_overdue,
        injection_day=user.injection_day,
        injection_day_name=WEEKDAY_NAMES[user.injection_day],
        week_start=week_start(now, user.injection_day),
        week_end=week_end(now, user.injection_day),
        last_injection=InjectionOut.model_validate(last) if last else None,
        suggested_site=pen.suggested_site,
        suggested_site_label=site_label(pen.suggested_site),
        current_dose=pen.current_dose,
        next_dose=pen.next_dose,
        doses_remaining=pen.doses_remaining,
        doses_per_pen=pen.doses_per_pen,
        tracks_golden_dose=pen.tracks_golden_dose,
        is_golden_dose_available=pen.is_golden_dose_available,
        is_on_golden_dose=pen.is_on_golden_dose,
        current_dosage=user.current_dosage,
    )


@router.patch("/{injection_id}", response_model=InjectionOut, summary="Edit injection")
async def update_injection(
    injection_id: str,
    payload: InjectionUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    now: datetime = Depends(get_now),
):
    injection = await get_owned(db, Injection, injection_id, user, "Injection")
    changes = payload.model_dump(exclude_unset=True)

    if changes.get("date") is not None:
        moment = logged_at(payload.date, now)
        if await _injection_in_cycle(db, user, moment, exclude_id=injection.id) is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="An injection is already logged for that week",
            )
        injection.date = moment
    if changes.get("site") is not None:
        injection.site = payload.site.value
    if "dose_number" in changes:
        _check_dose_number(payload.dose_number, PenSettings.from_user(user))
        injection.dose_number = payload.dose_number
    if "dosage_mg" in changes:
        injection.dosage_mg = payload.dosage_mg
    if "notes" in changes:
        injection.notes = payload.notes

    await db.commit()
    return injection


@router.delete("/{injection_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete injection")
async def delete_injection(
    injection_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    injection = await get_owned(db, Injection, injection_id, user, "Injection")
    await db.delete(injection)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
