"""Hourly reminder pass.

Loads every user with reminders switched on and at least one delivery
channel, applies the eligibility rules in ``reminders`` and delivers by push
and email. One user's failure is logged and recorded without stopping the
pass.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from needled.core.db import get_session_factory
from needled.core.security import TokenManager
from needled.core.settings import Settings
from needled.models import DailyHabit, Injection, NotificationPreference, User, WeighIn
from needled.services.notification_sender import NotificationSender
from needled.services.reminders import (
    PUSH_TEMPLATES,
    email_subject,
    is_reminder_time,
    local_date,
    render_email,
    should_send_habit_reminder,
    should_send_injection_reminder,
    should_send_weigh_in_reminder,
    unsubscribe_url,
)

logger = logging.getLogger(__name__)


@dataclass
class ReminderReport:
    injection_reminders: int = 0
    weigh_in_reminders: int = 0
    habit_reminders: int = 0
    emails_sent: int = 0
    push_sent: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def total_sent(self) -> int:
        return self.injection_reminders + self.weigh_in_reminders + self.habit_reminders


async def clear_push_token(session: AsyncSession, token: str) -> None:
    await session.execute(
        update(User)
        .where(User.expo_push_token == token)
        .values(expo_push_token=None, push_token_platform=None, push_token_updated_at=None)
    )


async def _deliver(
    session: AsyncSession,
    user: User,
    kind: str,
    sender: NotificationSender,
    settings: Settings,
    report: ReminderReport,
) -> bool:
    delivered = False

    if user.expo_push_token:
        result = await sender.send_push(user.expo_push_token, PUSH_TEMPLATES[kind])
        if result.success:
            report.push_sent += 1
            delivered = True
        elif result.device_not_registered:
            logger.info("Removing unregistered push token for user %s", user.id)
            await clear_push_token(session, user.expo_push_token)

    if user.email:
        token = TokenManager(settings).create_unsubscribe_token(user.id)
        html = render_email(
            kind,
            user_name=user.name,
            app_url=settings.notifications.app_url,
            unsubscribe_url=unsubscribe_url(settings.notifications.app_url, token),
            medication=user.medication if kind == "injection" else None,
        )
        subject = email_subject(kind, user.medication if kind == "injection" else None)
        if await sender.send_email(user.email, subject, html):
            report.emails_sent += 1
            delivered = True

    return delivered


async def _last_injection_at(session: AsyncSession, user_id: str) -> Optional[datetime]:
    stmt = select(Injection.date).where(Injection.user_id == user_id).order_by(Injection.date.desc()).limit(1)
    return (await session.execute(stmt)).scalar_one_or_none()


async def _last_weigh_in_at(session: AsyncSession, user_id: str) -> Optional[datetime]:
    stmt = select(WeighIn.date).where(WeighIn.user_id == user_id).order_by(WeighIn.date.desc()).limit(1)
    return (await session.execute(stmt)).scalar_one_or_none()


async def _remind_user(
    session: AsyncSession,
    user: User,
    prefs: NotificationPreference,
    now: datetime,
    sender: NotificationSender,
    settings: Settings,
    report: ReminderReport,
) -> None:
    tz_name = prefs.timezone

    if prefs.injection_reminder and is_reminder_time(prefs.reminder_time, tz_name, now):
        last_injection = await _last_injection_at(session, user.id)
        if should_send_injection_reminder(user.injection_day, last_injection, tz_name, now):
            if await _deliver(session, user, "injection", sender, settings, report):
                report.injection_reminders += 1

    if prefs.weigh_in_reminder and is_reminder_time(prefs.reminder_time, tz_name, now):
        last_weigh_in = await _last_weigh_in_at(session, user.id)
        if should_send_weigh_in_reminder(last_weigh_in, tz_name, now):
            if await _deliver(session, user, "weigh_in", sender, settings, report):
                report.weigh_in_reminders += 1

    if prefs.habit_reminder and is_reminder_time(prefs.habit_reminder_time, tz_name, now):
        stmt = select(DailyHabit).where(
            DailyHabit.user_id == user.id,
            DailyHabit.date == local_date(now, tz_name),
        )
        today_habit = (await session.execute(stmt)).scalar_one_or_none()
        if should_send_habit_reminder(today_habit):
            if await _deliver(session, user, "habit", sender, settings, report):
                report.habit_reminders += 1


async def run_reminder_pass(
    session: AsyncSession,
    now: datetime,
    settings: Settings,
    sender: NotificationSender,
) -> ReminderReport:
    report = ReminderReport()

    stmt = (
        select(User, NotificationPreference)
        .join(NotificationPreference, NotificationPreference.user_id == User.id)
        .where(
            or_(
                NotificationPreference.injection_reminder.is_(True),
                NotificationPreference.weigh_in_reminder.is_(True),
                NotificationPreference.habit_reminder.is_(True),
            ),
            or_(User.email.is_not(None), User.expo_push_token.is_not(None)),
        )
    )
    rows = (await session.execute(stmt)).all()
    logger.info("Reminder pass: %d candidate users", len(rows))

    for user, prefs in rows:
        try:
            await _remind_user(session, user, prefs, now, sender, settings, report)
        except Exception as exc:
            logger.exception("Reminder delivery failed for user %s", user.id)
            report.errors.append(f"{user.id}: {exc}")

    await session.commit()
    logger.info(
        "Reminder pass done: injection=%d weigh_in=%d habit=%d errors=%d",
        report.injection_reminders,
        report.weigh_in_reminders,
        report.habit_reminders,
        len(report.errors),
    )
    return report


async def send_welcome_email(user_id: str, settings: Settings) -> None:
    """Background task after registration. A failed send never fails signup."""
    async with get_session_factory()() as session:
        user = await session.get(User, user_id)
    if user is None or not user.email:
        return

    token = TokenManager(settings).create_unsubscribe_token(user.id)
    html = render_email(
        "welcome",
        user_name=user.name,
        app_url=settings.notifications.app_url,
        unsubscribe_url=unsubscribe_url(settings.notifications.app_url, token),
    )
    async with NotificationSender(settings.notifications) as sender:
        if not await sender.send_email(user.email, email_subject("welcome"), html):
            logger.warning("Welcome email not delivered for user %s", user.id)
