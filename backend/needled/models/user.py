import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from needled.core.clock import utcnow
from needled.core.db import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(30), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String, unique=True, index=True, nullable=True)
    password_hash: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    start_weight: Mapped[float] = mapped_column(Float, nullable=False)
    goal_weight: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # cm
    weight_unit: Mapped[str] = mapped_column(String(3), default="kg", nullable=False)

    medication: Mapped[str] = mapped_column(String, nullable=False)
    injection_day: Mapped[int] = mapped_column(Integer, nullable=False)  # 0=Mon..6=Sun
    current_dosage: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Pen configuration
    dosing_mode: Mapped[str] = mapped_column(String, default="STANDARD", nullable=False)
    pen_strength_mg: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    dose_amount_mg: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    doses_per_pen: Mapped[int] = mapped_column(Integer, default=4, nullable=False)
    tracks_golden_dose: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    current_dose_in_pen: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    expo_push_token: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    push_token_platform: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    push_token_updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)
