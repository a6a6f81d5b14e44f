"""
User-initiated lifecycle transitions (complete, snooze, cancel, share).

These are applied by upstream callers; the scheduler only sees their effect
through storage on its next scan.

    pending  -> completed | snoozed | cancelled
    snoozed  -> completed | snoozed | cancelled
    completed, cancelled: terminal
"""
import logging
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reminder_service.config import settings
from reminder_service.core.exceptions import InvalidTransition
from reminder_service.core.share_links import create_share_token, decode_share_token, share_expiry
from reminder_service.db.types import utcnow
from reminder_service.models.reminder import Reminder
from reminder_service.schemas.reminder import ReminderStatus

logger = logging.getLogger(__name__)

_ACTIVE = frozenset({ReminderStatus.PENDING.value, ReminderStatus.SNOOZED.value})


def _require_active(reminder: Reminder, target: ReminderStatus) -> None:
    if reminder.status not in _ACTIVE:
        raise InvalidTransition(reminder.id, reminder.status, target.value)


async def mark_completed(session: AsyncSession, reminder: Reminder, now: datetime | None = None) -> Reminder:
    _require_active(reminder, ReminderStatus.COMPLETED)
    reminder.status = ReminderStatus.COMPLETED.value
    reminder.completed_at = now or utcnow()
    reminder.snooze_until = None
    await session.flush()
    return reminder


async def snooze(
    session: AsyncSession,
    reminder: Reminder,
    minutes: int | None = None,
    now: datetime | None = None,
) -> Reminder:
    """Defer the reminder; the expiry triggers a fresh notification on every channel."""
    _require_active(reminder, ReminderStatus.SNOOZED)
    minutes = minutes if minutes is not None else settings.default_snooze_minutes
    if minutes < 1:
        raise ValueError("Snooze duration must be at least one minute")
    reminder.status = ReminderStatus.SNOOZED.value
    reminder.snooze_until = (now or utcnow()) + timedelta(minutes=minutes)
    reminder.snooze_count = (reminder.snooze_count or 0) + 1
    reminder.push_sent = False
    reminder.push_sent_at = None
    reminder.email_sent = False
    reminder.email_sent_at = None
    await session.flush()
    return reminder


async def cancel(session: AsyncSession, reminder: Reminder, now: datetime | None = None) -> Reminder:
    _require_active(reminder, ReminderStatus.CANCELLED)
    reminder.status = ReminderStatus.CANCELLED.value
    reminder.cancelled_at = now or utcnow()
    reminder.snooze_until = None
    await session.flush()
    return reminder


async def share(
    session: AsyncSession,
    reminder: Reminder,
    hours: int | None = None,
    now: datetime | None = None,
) -> str:
    """Create a share link valid for ``hours``; the cleanup job clears it after expiry."""
    now = now or utcnow()
    expires_at = share_expiry(hours, now)
    token = create_share_token(reminder.id, reminder.user_id, expires_at)
    reminder.is_shared = True
    reminder.share_token = token
    reminder.shared_at = now
    reminder.share_expires_at = expires_at
    await session.flush()
    return token


async def resolve_share_token(session: AsyncSession, token: str) -> Reminder | None:
    claims = decode_share_token(token)
    if not claims:
        return None
    r = await session.execute(
        select(Reminder).where(
            Reminder.id == int(claims["sub"]),
            Reminder.is_shared.is_(True),
            Reminder.share_token == token,
        )
    )
    return r.scalar_one_or_none()
