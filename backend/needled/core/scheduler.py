import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

logger = logging.getLogger(__name__)

# Missed hourly slots are dropped, never replayed
JOB_DEFAULTS = {
    "coalesce": True,
    "max_instances": 1,
    "misfire_grace_time": 300,
}

_scheduler: Optional[AsyncIOScheduler] = None


def init_scheduler() -> AsyncIOScheduler:
    global _scheduler
    if _scheduler and _scheduler.running:
        return _scheduler
    _scheduler = AsyncIOScheduler(timezone="UTC", job_defaults=JOB_DEFAULTS)
    _scheduler.start()
    logger.info("Reminder scheduler started")
    return _scheduler


def get_scheduler() -> Optional[AsyncIOScheduler]:
    return _scheduler


def shutdown_scheduler() -> None:
    global _scheduler
    if _scheduler and _scheduler.running:
        _scheduler.shutdown(wait=False)
        logger.info("Reminder scheduler stopped")
    _scheduler = None


def schedule_task(func, trigger, task_id, replace=True):
    if not _scheduler:
        raise RuntimeError("Scheduler not initialized")

    job = _scheduler.add_job(func, trigger, id=task_id, replace_existing=replace)
    logger.info("Scheduled task '%s' with trigger: %s", task_id, trigger)
    return job
