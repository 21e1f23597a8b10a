from datetime import date, timedelta

MAX_DAYS_IN_PAST = 90


class LogDateError(ValueError):
    """Raised when a back-dated log falls outside the allowed window."""


def validate_log_date(value: date, today: date) -> date:
    """Accept dates from ``MAX_DAYS_IN_PAST`` days ago up to today."""
    if value > today:
        raise LogDateError("Date cannot be in the future")
    if value < today - timedelta(days=MAX_DAYS_IN_PAST):
        raise LogDateError(f"Date cannot be more than {MAX_DAYS_IN_PAST} days in the past")
    return value
