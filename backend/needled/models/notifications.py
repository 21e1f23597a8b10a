import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from needled.core.clock import utcnow
from needled.core.db import Base


class NotificationPreference(Base):
    __tablename__ = "notification_preferences"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    injection_reminder: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    weigh_in_reminder: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    habit_reminder: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    reminder_time: Mapped[str] = mapped_column(String(5), default="09:00", nullable=False)
    habit_reminder_time: Mapped[str] = mapped_column(String(5), default="20:00", nullable=False)
    timezone: Mapped[str] = mapped_column(String, default="UTC", nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)
