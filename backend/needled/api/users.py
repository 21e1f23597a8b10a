import logging
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from needled.api.auth import issue_session
from needled.api.schemas import TokenPair, clean_email, clean_name
from needled.core.clock import get_now
from needled.core.db import get_db_session
from needled.core.security import TokenManager, get_current_user, get_token_manager, hash_password
from needled.core.settings import Settings, get_settings
from needled.models import NotificationPreference, User
from needled.models.enums import Medication, WeightUnit
from needled.services.reminder_service import send_welcome_email

logger = logging.getLogger(__name__)

router = APIRouter()


class UserCreate(BaseModel):
    name: str
    email: str
    password: str = Field(min_length=8)
    start_weight: float = Field(ge=40, le=300)
    goal_weight: Optional[float] = Field(default=None, ge=40, le=300)
    weight_unit: WeightUnit
    medication: Medication
    injection_day: int = Field(ge=0, le=6)
    starting_dosage: Optional[float] = Field(default=None, ge=0.25, le=15)
    height: Optional[int] = Field(default=None, ge=100, le=250)
    current_dose_in_pen: int = Field(default=1, ge=1, le=51)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return clean_name(value)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return clean_email(value)

    @model_validator(mode="after")
    def goal_below_start(self):
        if self.goal_weight is not None and self.goal_weight >= self.start_weight:
            raise ValueError("Goal weight must be less than starting weight")
        return self


class PushTokenRequest(BaseModel):
    token: str = Field(min_length=1)
    platform: Literal["ios", "android"]

    @field_validator("token")
    @classmethod
    def expo_format(cls, value: str) -> str:
        if not value.startswith("ExponentPushToken["):
            raise ValueError("Invalid push token format. Must start with ExponentPushToken[")
        return value


async def email_taken(db: AsyncSession, email: str, exclude_user_id: Optional[str] = None) -> bool:
    stmt = select(User.id).where(func.lower(User.email) == email.lower())
    if exclude_user_id:
        stmt = stmt.where(User.id != exclude_user_id)
    return (await db.execute(stmt)).first() is not None


@router.post("", response_model=TokenPair, status_code=status.HTTP_201_CREATED, summary="Register")
async def register(
    payload: UserCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db_session),
    token_manager: TokenManager = Depends(get_token_manager),
    settings: Settings = Depends(get_settings),
):
    if await email_taken(db, payload.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")

    user = User(
        name=payload.name,
        email=payload.email,
        password_hash=hash_password(payload.password),
        start_weight=payload.start_weight,
        goal_weight=payload.goal_weight,
        height=payload.height,
        weight_unit=payload.weight_unit.value,
        medication=payload.medication.value,
        injection_day=payload.injection_day,
        current_dosage=payload.starting_dosage,
        current_dose_in_pen=payload.current_dose_in_pen,
    )
    db.add(user)
    await db.flush()
    db.add(NotificationPreference(user_id=user.id))

    tokens = await issue_session(db, user, token_manager)
    logger.info("Registered user %s", user.id)

    if settings.notifications.enabled and settings.notifications.sendgrid_api_key:
        background_tasks.add_task(send_welcome_email, user.id, settings)
    return tokens


@router.post("/push-token", summary="Register Expo push token")
async def register_push_token(
    payload: PushTokenRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    now: datetime = Depends(get_now),
):
    user.expo_push_token = payload.token
    user.push_token_platform = payload.platform
    user.push_token_updated_at = now
    await db.commit()
    return {"ok": True}
