import logging
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

from needled.core.scheduler import get_scheduler
from needled.services.reminder_service import ReminderReport

logger = logging.getLogger(__name__)

JOB_KEYS_TO_SCHEDULER_IDS: dict[str, str] = {
    "reminders": "hourly_reminders",
}

TRIGGER_SCHEDULER = "scheduler"
TRIGGER_CRON = "cron"


@dataclass
class JobStatus:
    last_run_at: Optional[str] = None
    last_trigger: Optional[str] = None
    last_ok: Optional[bool] = None
    last_error: Optional[str] = None
    last_duration_ms: Optional[int] = None
    last_sent: Optional[int] = None
    last_delivery_errors: int = 0
    runs: int = 0
    next_run_at: Optional[str] = None


_job_states: dict[str, JobStatus] = {}


def _state(job_key: str) -> JobStatus:
    return _job_states.setdefault(job_key, JobStatus())


def _to_iso(value: Optional[datetime]) -> Optional[str]:
    if not value:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def record_reminder_report(job_key: str, report: ReminderReport) -> None:
    """Keep the delivery counts of the latest reminder pass.

    A pass with per-user delivery errors still counts as a successful run; the
    errors are surfaced through ``last_delivery_errors`` instead.
    """
    state = _state(job_key)
    state.last_sent = report.total_sent
    state.last_delivery_errors = len(report.errors)
    if report.errors:
        logger.warning(
            "Job %s finished with %d delivery errors (sent=%d)",
            job_key,
            len(report.errors),
            report.total_sent,
        )


def refresh_next_run(job_key: str) -> None:
    scheduler = get_scheduler()
    job_id = JOB_KEYS_TO_SCHEDULER_IDS.get(job_key)
    if not scheduler or not job_id:
        return
    job = scheduler.get_job(job_id)
    _state(job_key).next_run_at = _to_iso(job.next_run_time if job else None)


def get_all_states() -> dict[str, dict[str, object]]:
    for job_key in JOB_KEYS_TO_SCHEDULER_IDS:
        _state(job_key)
    for job_key in list(_job_states):
        refresh_next_run(job_key)
    return {job_key: asdict(state) for job_key, state in _job_states.items()}


def reset_states() -> None:
    _job_states.clear()


async def run_job(
    job_key: str,
    func: Callable[..., Awaitable[Any]],
    *args: Any,
    trigger: str = TRIGGER_SCHEDULER,
    **kwargs: Any,
) -> Any:
    state = _state(job_key)
    state.runs += 1
    state.last_run_at = _to_iso(datetime.now(timezone.utc))
    state.last_trigger = trigger
    started = time.monotonic()
    try:
        result = await func(*args, **kwargs)
    except Exception as exc:
        state.last_ok = False
        state.last_error = str(exc)
        logger.exception("Job %s failed (trigger=%s)", job_key, trigger)
        raise
    else:
        state.last_ok = True
        state.last_error = None
        if isinstance(result, ReminderReport):
            record_reminder_report(job_key, result)
        return result
    finally:
        state.last_duration_ms = int((time.monotonic() - started) * 1000)
        refresh_next_run(job_key)
