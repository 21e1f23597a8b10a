import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from needled.api.schemas import ORMModel, TIME_PATTERN
from needled.core.db import get_db_session
from needled.core.security import TokenManager, get_current_user, get_token_manager
from needled.models import NotificationPreference, User
from needled.services.reminders import resolve_timezone

logger = logging.getLogger(__name__)

router = APIRouter()


class NotificationPreferencesIn(BaseModel):
    injection_reminder: bool
    weigh_in_reminder: bool
    habit_reminder: bool
    reminder_time: str = Field(pattern=TIME_PATTERN)
    habit_reminder_time: str = Field(pattern=TIME_PATTERN)
    timezone: str = Field(min_length=1)

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, value: str) -> str:
        if resolve_timezone(value).key != value:
            raise ValueError("Unknown timezone")
        return value


class NotificationPreferencesOut(ORMModel):
    injection_reminder: bool
    weigh_in_reminder: bool
    habit_reminder: bool
    reminder_time: str
    habit_reminder_time: str
    timezone: str


async def get_or_create_preferences(db: AsyncSession, user_id: str) -> NotificationPreference:
    stmt = select(NotificationPreference).where(NotificationPreference.user_id == user_id)
    prefs = (await db.execute(stmt)).scalar_one_or_none()
    if prefs is None:
        prefs = NotificationPreference(user_id=user_id)
        db.add(prefs)
        await db.commit()
    return prefs


@router.get("/preferences", response_model=NotificationPreferencesOut, summary="Reminder preferences")
async def get_preferences(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    return await get_or_create_preferences(db, user.id)


@router.put("/preferences", response_model=NotificationPreferencesOut, summary="Update reminder preferences")
async def update_preferences(
    payload: NotificationPreferencesIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    prefs = await get_or_create_preferences(db, user.id)
    for key, value in payload.model_dump().items():
        setattr(prefs, key, value)
    await db.commit()
    return prefs


@router.post("/unsubscribe", summary="Unsubscribe from reminder emails")
async def unsubscribe(
    token: str = Body(embed=True),
    db: AsyncSession = Depends(get_db_session),
    token_manager: TokenManager = Depends(get_token_manager),
):
    payload = token_manager.decode_token(token, expected_type="unsubscribe")
    user_id: Optional[str] = payload.get("sub")
    user = await db.get(User, user_id) if user_id else None
    if user is not None:
        prefs = await get_or_create_preferences(db, user.id)
        prefs.injection_reminder = False
        prefs.weigh_in_reminder = False
        prefs.habit_reminder = False
        await db.commit()
        logger.info("User %s unsubscribed from reminders", user.id)
    # Same answer for unknown users so tokens cannot reveal accounts
    return {"ok": True}
