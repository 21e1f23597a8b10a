"""Reminder eligibility.

Reminders are evaluated once an hour. Each rule is checked against the
current time in the user's own timezone, so a 09:00 reminder goes out at
09:00 local regardless of where the server runs.
"""
import logging
from dataclasses import dataclass
from html import escape
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from needled.services.habits import HabitDay, has_any_habit
from needled.services.injection_week import anchor_weekday

logger = logging.getLogger(__name__)

WEIGH_IN_REMINDER_WEEKDAY = 0  # Monday
WEIGH_IN_INTERVAL_DAYS = 7


@dataclass(frozen=True)
class PushTemplate:
    title: str
    body: str
    data: dict[str, str]
    priority: str = "default"
    channel_id: str = "default"


PUSH_TEMPLATES: dict[str, PushTemplate] = {
    "injection": PushTemplate(
        title="Time for your injection! 💉",
        body="Pip is here to remind you it's injection day. You've got this!",
        data={"type": "injection", "screen": "/(tabs)/injection"},
        priority="high",
        channel_id="injection-reminders",
    ),
    "weigh_in": PushTemplate(
        title="Weekly weigh-in time! ⚖️",
        body="Track your progress with a quick weigh-in.",
        data={"type": "weighin", "screen": "/(tabs)/weigh-in"},
        channel_id="weighin-reminders",
    ),
    "habit": PushTemplate(
        title="Don't forget your habits! 🌟",
        body="Have you logged your water, nutrition, and exercise today?",
        data={"type": "habits", "screen": "/(tabs)/check-in"},
        channel_id="habit-reminders",
    ),
}


def resolve_timezone(name: Optional[str]) -> ZoneInfo:
    if not name:
        return ZoneInfo("UTC")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, falling back to UTC", name)
        return ZoneInfo("UTC")


def local_now(now_utc: datetime, tz_name: Optional[str]) -> datetime:
    """``now_utc`` (naive UTC, as stored) converted to the user's wall clock."""
    aware = now_utc.replace(tzinfo=timezone.utc) if now_utc.tzinfo is None else now_utc
    return aware.astimezone(resolve_timezone(tz_name))


def local_date(moment_utc: datetime, tz_name: Optional[str]) -> date:
    return local_now(moment_utc, tz_name).date()


def reminder_hour(reminder_time: str) -> int:
    return int(reminder_time.split(":")[0])


def is_reminder_time(reminder_time: str, tz_name: Optional[str], now_utc: datetime) -> bool:
    """True during the local hour named by ``reminder_time`` (HH:MM)."""
    return local_now(now_utc, tz_name).hour == reminder_hour(reminder_time)


def should_send_injection_reminder(
    injection_day: int,
    last_injection_at: Optional[datetime],
    tz_name: Optional[str],
    now_utc: datetime,
) -> bool:
    """Injection day in the user's timezone and nothing logged yet today."""
    today = local_now(now_utc, tz_name)
    if anchor_weekday(today) != injection_day:
        return False
    if last_injection_at is not None and local_date(last_injection_at, tz_name) == today.date():
        return False
    return True


def should_send_weigh_in_reminder(
    last_weigh_in_at: Optional[datetime],
    tz_name: Optional[str],
    now_utc: datetime,
) -> bool:
    """Mondays only, when the last weigh-in is a week old or missing."""
    today = local_now(now_utc, tz_name)
    if anchor_weekday(today) != WEIGH_IN_REMINDER_WEEKDAY:
        return False
    if last_weigh_in_at is None:
        return True
    elapsed = now_utc.replace(tzinfo=None) - last_weigh_in_at.replace(tzinfo=None)
    return elapsed.days >= WEIGH_IN_INTERVAL_DAYS


def should_send_habit_reminder(today_habit: Optional[HabitDay]) -> bool:
    """Skip users who already ticked something today."""
    return not has_any_habit(today_habit)


def email_subject(kind: str, medication: Optional[str] = None) -> str:
    if kind == "injection":
        return f"{medication} injection day - don't forget!" if medication else "Injection day - don't forget!"
    if kind == "weigh_in":
        return "Time for your weekly weigh-in"
    if kind == "habit":
        return "Have you logged your habits today?"
    if kind == "welcome":
        return "Welcome to Needled"
    raise ValueError(f"Unknown reminder kind: {kind}")


_EMAIL_SHELL = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"><title>{title}</title></head>
<body style="margin: 0; padding: 40px 20px; background-color: #050505; font-family: -apple-system, sans-serif;">
  <div style="max-width: 480px; margin: 0 auto;">
    <p style="color: #BFFF00; font-size: 24px; font-weight: 600; text-align: center;">Needled</p>
    <div style="background-color: #0F0F0F; border-radius: 16px; padding: 32px;">
      <h1 style="color: #FFFFFF; font-size: 24px; margin: 0 0 16px 0;">{heading}</h1>
      <p style="color: #737373; font-size: 16px; line-height: 24px;">{body}</p>
      <p style="text-align: center;"><a href="{cta_url}" style="color: #050505; background-color: #BFFF00; padding: 12px 24px; border-radius: 8px; text-decoration: none;">{cta}</a></p>
    </div>
    <p style="color: #525252; font-size: 12px; text-align: center;">
      <a href="{unsubscribe_url}" style="color: #525252;">Unsubscribe from reminders</a>
    </p>
  </div>
</body>
</html>
"""


def render_email(
    kind: str,
    user_name: str,
    app_url: str,
    unsubscribe_url: str,
    medication: Optional[str] = None,
) -> str:
    user_name = escape(user_name)
    if kind == "injection":
        heading = f"Time for your {medication} injection" if medication else "Time for your injection"
        body = (
            f"Hey {user_name}, today's your injection day! "
            "Don't forget to log it in Needled to keep your streak going."
        )
        cta, path = "Log injection", "/injection"
    elif kind == "weigh_in":
        heading = "Weekly weigh-in time"
        body = f"Hey {user_name}, it's a new week. Step on the scale and log your weigh-in to see your progress."
        cta, path = "Log weigh-in", "/weigh-in"
    elif kind == "habit":
        heading = "How did today go?"
        body = f"Hey {user_name}, have you logged your water, nutrition and exercise today?"
        cta, path = "Log habits", "/habits"
    elif kind == "welcome":
        heading = f"Welcome, {user_name}!"
        body = "Your journey starts now. Log your injections, weigh in weekly and build healthy habits."
        cta, path = "Open Needled", "/home"
    else:
        raise ValueError(f"Unknown reminder kind: {kind}")

    return _EMAIL_SHELL.format(
        title=email_subject(kind, medication),
        heading=heading,
        body=body,
        cta=cta,
        cta_url=f"{app_url.rstrip('/')}{path}",
        unsubscribe_url=unsubscribe_url,
    )


def unsubscribe_url(app_url: str, token: str) -> str:
    return f"{app_url.rstrip('/')}/unsubscribe?token={token}"
