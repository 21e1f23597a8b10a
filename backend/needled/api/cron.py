import logging
import secrets
from datetime import datetime
from typing import AsyncGenerator, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from needled import jobs_state
from needled.core.clock import get_now
from needled.core.db import get_db_session
from needled.core.settings import Settings, get_settings
from needled.services.notification_sender import NotificationSender
from needled.services.reminder_service import run_reminder_pass

logger = logging.getLogger(__name__)

router = APIRouter()


async def get_notification_sender(
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[NotificationSender, None]:
    async with NotificationSender(settings.notifications) as sender:
        yield sender


def cron_authorized(
    authorization: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    expected = settings.security.cron_secret
    if not expected:
        logger.error("Cron secret is not configured")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server configuration error")
    provided = (authorization or "").removeprefix("Bearer ").strip()
    if not secrets.compare_digest(provided, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


@router.post("/notifications", summary="Run the reminder pass", dependencies=[Depends(cron_authorized)])
async def run_notifications(
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
    sender: NotificationSender = Depends(get_notification_sender),
    now: datetime = Depends(get_now),
):
    report = await jobs_state.run_job(
        "reminders", run_reminder_pass, db, now, settings, sender, trigger=jobs_state.TRIGGER_CRON
    )
    return {
        "success": True,
        "total_sent": report.total_sent,
        "breakdown": {
            "injection_reminders": report.injection_reminders,
            "weigh_in_reminders": report.weigh_in_reminders,
            "habit_reminders": report.habit_reminders,
        },
        "emails_sent": report.emails_sent,
        "push_sent": report.push_sent,
        "errors": report.errors or None,
    }
