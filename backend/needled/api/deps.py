from datetime import date, datetime, time
from typing import Optional, TypeVar

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from needled.core.db import Base
from needled.models.user import User
from needled.services.log_dates import LogDateError, validate_log_date

ModelT = TypeVar("ModelT", bound=Base)

# Back-dated entries are stored at noon so the calendar day survives any UTC offset
LOGGED_AT = time(12, 0)


def resolve_log_date(value: Optional[date], now: datetime) -> Optional[date]:
    if value is None:
        return None
    try:
        return validate_log_date(value, now.date())
    except LogDateError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def logged_at(value: Optional[date], now: datetime) -> datetime:
    """Timestamp for a log entry: ``now`` for today's entries, noon for back-dated ones."""
    day = resolve_log_date(value, now)
    if day is None:
        return now
    return datetime.combine(day, LOGGED_AT)


async def get_owned(db: AsyncSession, model: type[ModelT], obj_id: str, user: User, label: str) -> ModelT:
    obj = await db.get(model, obj_id)
    # Someone else's row reads as missing
    if obj is None or obj.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    return obj
