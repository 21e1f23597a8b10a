import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from needled.core.clock import utcnow
from needled.core.db import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class WeighIn(Base):
    __tablename__ = "weigh_ins"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    weight: Mapped[float] = mapped_column(Float, nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime, index=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class Injection(Base):
    __tablename__ = "injections"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    date: Mapped[datetime] = mapped_column(DateTime, index=True, nullable=False)
    site: Mapped[str] = mapped_column(String, nullable=False)
    # Nullable for rows logged before pen tracking existed
    dose_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    dosage_mg: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class DailyHabit(Base):
    __tablename__ = "daily_habits"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_daily_habit_user_date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    date: Mapped[date] = mapped_column(Date, nullable=False)
    water: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    nutrition: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    exercise: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
