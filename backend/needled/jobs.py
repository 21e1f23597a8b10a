import logging

from apscheduler.triggers.cron import CronTrigger

from needled import jobs_state
from needled.core.clock import utcnow
from needled.core.db import get_session_factory
from needled.core.scheduler import schedule_task
from needled.core.settings import get_settings
from needled.services.notification_sender import NotificationSender
from needled.services.reminder_service import ReminderReport, run_reminder_pass

logger = logging.getLogger(__name__)


async def _run_reminders_task() -> ReminderReport:
    """
    Background Task: evaluates reminder rules for every user.
    Runs at the top of each hour so HH:00 preferences fire once.
    """
    settings = get_settings()
    async with get_session_factory()() as session:
        async with NotificationSender(settings.notifications) as sender:
            return await run_reminder_pass(session, utcnow(), settings, sender)


async def run_reminders() -> ReminderReport:
    return await jobs_state.run_job("reminders", _run_reminders_task)


def setup_periodic_tasks() -> None:
    schedule_task(run_reminders, CronTrigger(minute=0), jobs_state.JOB_KEYS_TO_SCHEDULER_IDS["reminders"])
    logger.info("Periodic tasks registered")
