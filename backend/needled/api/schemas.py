import re
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class UserProfile(ORMModel):
    id: str
    name: str
    email: Optional[str] = None
    start_weight: float
    goal_weight: Optional[float] = None
    height: Optional[int] = None
    weight_unit: str
    medication: str
    injection_day: int
    current_dosage: Optional[float] = None
    dosing_mode: str
    pen_strength_mg: Optional[float] = None
    dose_amount_mg: Optional[float] = None
    doses_per_pen: int
    tracks_golden_dose: bool
    current_dose_in_pen: int
    created_at: datetime


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserProfile


class WeighInOut(ORMModel):
    id: str
    weight: float
    date: datetime
    created_at: datetime


class InjectionOut(ORMModel):
    id: str
    date: datetime
    site: str
    dose_number: Optional[int] = None
    dosage_mg: Optional[float] = None
    notes: Optional[str] = None
    created_at: datetime


class DailyHabitOut(ORMModel):
    id: str
    date: date
    water: bool
    nutrition: bool
    exercise: bool


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
TIME_PATTERN = r"^([01]\d|2[0-3]):([0-5]\d)$"

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 30


def clean_name(value: str) -> str:
    value = value.strip()
    if not NAME_MIN_LENGTH <= len(value) <= NAME_MAX_LENGTH:
        raise ValueError(f"Name must be {NAME_MIN_LENGTH}-{NAME_MAX_LENGTH} characters")
    return value


def clean_email(value: str) -> str:
    value = value.strip().lower()
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Invalid email format")
    return value
