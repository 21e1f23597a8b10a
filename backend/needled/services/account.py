import logging
from datetime import date, datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from needled.models import AuthSession, DailyHabit, Injection, NotificationPreference, User, WeighIn

logger = logging.getLogger(__name__)

EXPORT_VERSION = 1

_PROFILE_FIELDS = (
    "id",
    "name",
    "email",
    "start_weight",
    "goal_weight",
    "height",
    "weight_unit",
    "medication",
    "injection_day",
    "current_dosage",
    "dosing_mode",
    "pen_strength_mg",
    "dose_amount_mg",
    "doses_per_pen",
    "tracks_golden_dose",
    "current_dose_in_pen",
    "created_at",
    "updated_at",
)


def _serialize(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _row(obj: Any, fields: tuple[str, ...]) -> dict[str, Any]:
    return {name: _serialize(getattr(obj, name)) for name in fields}


async def export_user_data(session: AsyncSession, user: User, exported_at: datetime) -> dict[str, Any]:
    """Everything stored about ``user``, minus credentials and push tokens."""
    weigh_ins = (
        await session.execute(select(WeighIn).where(WeighIn.user_id == user.id).order_by(WeighIn.date.asc()))
    ).scalars().all()
    injections = (
        await session.execute(select(Injection).where(Injection.user_id == user.id).order_by(Injection.date.asc()))
    ).scalars().all()
    habits = (
        await session.execute(select(DailyHabit).where(DailyHabit.user_id == user.id).order_by(DailyHabit.date.asc()))
    ).scalars().all()
    prefs = (
        await session.execute(select(NotificationPreference).where(NotificationPreference.user_id == user.id))
    ).scalar_one_or_none()

    return {
        "version": EXPORT_VERSION,
        "exported_at": _serialize(exported_at),
        "profile": _row(user, _PROFILE_FIELDS),
        "weigh_ins": [_row(w, ("id", "weight", "date", "created_at")) for w in weigh_ins],
        "injections": [
            _row(i, ("id", "date", "site", "dose_number", "dosage_mg", "notes", "created_at"))
            for i in injections
        ],
        "habits": [_row(h, ("date", "water", "nutrition", "exercise")) for h in habits],
        "notification_preferences": (
            _row(
                prefs,
                (
                    "injection_reminder",
                    "weigh_in_reminder",
                    "habit_reminder",
                    "reminder_time",
                    "habit_reminder_time",
                    "timezone",
                ),
            )
            if prefs
            else None
        ),
    }


async def delete_account(session: AsyncSession, user_id: str) -> None:
    # SQLite does not enforce ON DELETE CASCADE without a pragma, so children go first
    for model in (AuthSession, NotificationPreference, DailyHabit, Injection, WeighIn):
        await session.execute(delete(model).where(model.user_id == user_id))
    await session.execute(delete(User).where(User.id == user_id))
    await session.commit()
    logger.info("Deleted account %s", user_id)
