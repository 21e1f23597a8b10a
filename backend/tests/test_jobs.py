import pytest

from needled import jobs_state
from needled.core.logging import build_logging_config
from needled.core.scheduler import get_scheduler, init_scheduler, shutdown_scheduler
from needled.jobs import setup_periodic_tasks
from needled.services.reminder_service import ReminderReport


@pytest.fixture(autouse=True)
def clean_job_states():
    jobs_state.reset_states()
    yield
    jobs_state.reset_states()


@pytest.mark.asyncio
async def test_run_job_records_success():
    async def work(value):
        return value * 2

    assert await jobs_state.run_job("reminders", work, 21) == 42
    state = jobs_state.get_all_states()["reminders"]
    assert state["last_ok"] is True
    assert state["last_error"] is None
    assert state["last_trigger"] == "scheduler"
    assert state["runs"] == 1
    assert state["last_duration_ms"] >= 0


@pytest.mark.asyncio
async def test_run_job_records_and_reraises_errors():
    async def broken():
        raise RuntimeError("database unavailable")

    with pytest.raises(RuntimeError):
        await jobs_state.run_job("reminders", broken)

    state = jobs_state.get_all_states()["reminders"]
    assert state["last_ok"] is False
    assert state["last_error"] == "database unavailable"


@pytest.mark.asyncio
async def test_hourly_reminder_job_is_scheduled():
    init_scheduler()
    try:
        setup_periodic_tasks()
        job = get_scheduler().get_job("hourly_reminders")
        assert job is not None
        assert job.next_run_time.minute == 0
        assert jobs_state.get_all_states()["reminders"]["next_run_at"] is not None
    finally:
        shutdown_scheduler()


@pytest.mark.asyncio
async def test_run_job_keeps_reminder_delivery_counts():
    async def reminder_pass():
        return ReminderReport(injection_reminders=2, habit_reminders=1, errors=["user-1: push failed"])

    await jobs_state.run_job("reminders", reminder_pass, trigger=jobs_state.TRIGGER_CRON)

    state = jobs_state.get_all_states()["reminders"]
    assert state["last_ok"] is True
    assert state["last_trigger"] == "cron"
    assert state["last_sent"] == 3
    assert state["last_delivery_errors"] == 1


@pytest.mark.asyncio
async def test_scheduler_drops_missed_runs():
    scheduler = init_scheduler()
    try:
        assert init_scheduler() is scheduler
        setup_periodic_tasks()
        job = scheduler.get_job("hourly_reminders")
        assert job.coalesce is True
        assert job.max_instances == 1
    finally:
        shutdown_scheduler()
    assert get_scheduler() is None


def test_logging_config_can_silence_access_log():
    config = build_logging_config("DEBUG", access_log=False)
    assert config["loggers"]["uvicorn.access"]["handlers"] == []
    assert config["loggers"]["needled"]["level"] == "DEBUG"
    assert config["loggers"]["sqlalchemy.engine"]["level"] == "WARNING"

    assert build_logging_config("INFO", sql_echo=True)["loggers"]["sqlalchemy.engine"]["level"] == "INFO"
