import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy.ext.asyncio import AsyncSession

from needled.api.schemas import UserProfile, clean_email, clean_name
from needled.api.users import email_taken
from needled.core.clock import get_now
from needled.core.db import get_db_session
from needled.core.security import get_current_user, hash_password, verify_password
from needled.models import User
from needled.models.enums import DosingMode, Medication
from needled.services.account import delete_account, export_user_data
from needled.services.pen_dosing import PenSettings, PenSettingsError, merge_pen_settings

logger = logging.getLogger(__name__)

router = APIRouter()


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    goal_weight: Optional[float] = Field(default=None, ge=40, le=300)
    medication: Optional[Medication] = None
    injection_day: Optional[int] = Field(default=None, ge=0, le=6)
    current_dosage: Optional[float] = Field(default=None, ge=0.25, le=15)
    height: Optional[int] = Field(default=None, ge=100, le=250)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: Optional[str]) -> Optional[str]:
        return clean_name(value) if value is not None else None


class EmailUpdate(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return clean_email(value)


class PasswordUpdate(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8)
    confirm_password: str = Field(min_length=1)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class AccountDelete(BaseModel):
    password: str = Field(min_length=1)


class PenDosingSettings(BaseModel):
    dosing_mode: DosingMode
    pen_strength_mg: Optional[float] = None
    dose_amount_mg: Optional[float] = None
    doses_per_pen: int
    tracks_golden_dose: bool
    current_dose_in_pen: int


class PenDosingUpdate(BaseModel):
    dosing_mode: Optional[DosingMode] = None
    pen_strength_mg: Optional[float] = Field(default=None, ge=0.5, le=100)
    dose_amount_mg: Optional[float] = Field(default=None, ge=0.1, le=50)
    doses_per_pen: Optional[int] = Field(default=None, ge=1, le=50)
    tracks_golden_dose: Optional[bool] = None
    current_dose_in_pen: Optional[int] = Field(default=None, ge=1)


def _pen_settings_out(settings: PenSettings) -> PenDosingSettings:
    return PenDosingSettings(
        dosing_mode=settings.dosing_mode,
        pen_strength_mg=settings.pen_strength_mg,
        dose_amount_mg=settings.dose_amount_mg,
        doses_per_pen=settings.doses_per_pen,
        tracks_golden_dose=settings.tracks_golden_dose,
        current_dose_in_pen=settings.current_dose_in_pen,
    )


def _check_password(user: User, password: str) -> None:
    if not user.password_hash:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Password not set for this account")
    if not verify_password(password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Incorrect password")


@router.get("", response_model=UserProfile, summary="Profile settings")
async def get_settings_profile(user: User = Depends(get_current_user)):
    return user


@router.patch("/profile", response_model=UserProfile, summary="Update profile")
async def update_profile(
    payload: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    changes = payload.model_dump(exclude_unset=True)
    for key in ("name", "medication", "injection_day"):
        if key in changes and changes[key] is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{key} cannot be empty")

    goal = changes.get("goal_weight", user.goal_weight)
    if goal is not None and goal >= user.start_weight:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Goal weight must be less than starting weight",
        )

    for key, value in changes.items():
        setattr(user, key, value.value if isinstance(value, Medication) else value)
    await db.commit()
    logger.info("Updated profile for user %s: %s", user.id, sorted(changes))
    return user


@router.put("/email", response_model=UserProfile, summary="Change email")
async def update_email(
    payload: EmailUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    if await email_taken(db, payload.email, exclude_user_id=user.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")
    user.email = payload.email
    await db.commit()
    return user


@router.put("/password", summary="Change password")
async def update_password(
    payload: PasswordUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    _check_password(user, payload.current_password)
    user.password_hash = hash_password(payload.new_password)
    await db.commit()
    return {"ok": True}


@router.get("/pen-dosing", response_model=PenDosingSettings, summary="Pen configuration")
async def get_pen_dosing(user: User = Depends(get_current_user)):
    return _pen_settings_out(PenSettings.from_user(user))


@router.put("/pen-dosing", response_model=PenDosingSettings, summary="Update pen configuration")
async def update_pen_dosing(
    payload: PenDosingUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    changes = payload.model_dump(exclude_unset=True)
    if "dosing_mode" in changes and changes["dosing_mode"] is not None:
        changes["dosing_mode"] = changes["dosing_mode"].value

    try:
        merged = merge_pen_settings(PenSettings.from_user(user), changes)
    except PenSettingsError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    user.dosing_mode = merged.dosing_mode
    user.pen_strength_mg = merged.pen_strength_mg
    user.dose_amount_mg = merged.dose_amount_mg
    user.doses_per_pen = merged.doses_per_pen
    user.tracks_golden_dose = merged.tracks_golden_dose
    user.current_dose_in_pen = merged.current_dose_in_pen
    await db.commit()
    return _pen_settings_out(merged)


@router.get("/export", summary="Export all user data")
async def export_data(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    now: datetime = Depends(get_now),
):
    data = await export_user_data(db, user, now)
    filename = f"needled-export-{now.date().isoformat()}.json"
    return JSONResponse(content=data, headers={"Content-Disposition": f'attachment; filename="{filename}"'})


@router.delete("/account", summary="Delete account")
async def remove_account(
    payload: AccountDelete,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    _check_password(user, payload.password)
    await delete_account(db, user.id)
    return {"message": "Account deleted successfully"}
