"""
Storage for reminders and the notification fields of users.

Reads are plain query helpers; writes that the scheduler performs outside a
reminder's own ORM object go through typed commands so each one touches a
known, minimal set of columns.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Union

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from reminder_service.models.reminder import Reminder
from reminder_service.models.user import User
from reminder_service.schemas.reminder import Channel, ChannelResult, RecurrenceType, ReminderStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClearPushSubscription:
    user_id: int


@dataclass(frozen=True)
class AttachPushSubscription:
    user_id: int
    subscription: dict[str, Any]


@dataclass(frozen=True)
class RecordDeliveryOutcome:
    reminder_id: int
    channel: Channel
    result: ChannelResult
    at: datetime


@dataclass(frozen=True)
class ReleaseSnooze:
    """
    Snoozed -> pending once the snooze has elapsed; no-op if the owner changed the status meanwhile.
    reset_delivery clears the sent flags so a scheduled time still ahead notifies on its own.
    """

    reminder_id: int
    reset_delivery: bool = False


Command = Union[ClearPushSubscription, AttachPushSubscription, RecordDeliveryOutcome, ReleaseSnooze]


def _due_clause(now: datetime):
    return or_(
        and_(Reminder.status == ReminderStatus.PENDING.value, Reminder.scheduled_time <= now),
        and_(
            Reminder.status == ReminderStatus.SNOOZED.value,
            Reminder.snooze_until.isnot(None),
            Reminder.snooze_until <= now,
        ),
    )


async def find_due(session: AsyncSession, now: datetime) -> list[Reminder]:
    """Pending reminders past their time and snoozed ones past their snooze, with user loaded."""
    r = await session.execute(
        select(Reminder).options(selectinload(Reminder.user)).where(_due_clause(now))
    )
    return list(r.scalars().unique().all())


async def get_with_user(session: AsyncSession, reminder_id: int) -> Reminder | None:
    r = await session.execute(
        select(Reminder).options(selectinload(Reminder.user)).where(Reminder.id == reminder_id)
    )
    return r.scalar_one_or_none()


async def get_user(session: AsyncSession, user_id: int) -> User | None:
    return await session.get(User, user_id)


async def find_completed_recurring(session: AsyncSession, now: datetime) -> list[Reminder]:
    """Completed recurring reminders past their time whose successor has not been spawned yet."""
    r = await session.execute(
        select(Reminder).where(
            Reminder.status == ReminderStatus.COMPLETED.value,
            Reminder.recurrence_type != RecurrenceType.NONE.value,
            Reminder.scheduled_time <= now,
            Reminder.next_occurrence_created_at.is_(None),
        )
    )
    return list(r.scalars().all())


async def find_duplicate_occurrence(
    session: AsyncSession,
    user_id: int,
    title: str,
    scheduled_time: datetime,
    recurrence_type: str,
) -> Reminder | None:
    """Existing reminder for the same user, title, instant and recurrence type, if any."""
    r = await session.execute(
        select(Reminder)
        .where(
            Reminder.user_id == user_id,
            Reminder.title == title,
            Reminder.scheduled_time == scheduled_time,
            Reminder.recurrence_type == recurrence_type,
        )
        .limit(1)
    )
    return r.scalar_one_or_none()


def _stale_timestamp(status: ReminderStatus):
    if status == ReminderStatus.COMPLETED:
        return func.coalesce(Reminder.completed_at, Reminder.updated_at)
    if status == ReminderStatus.CANCELLED:
        return func.coalesce(Reminder.cancelled_at, Reminder.updated_at)
    return Reminder.updated_at


async def find_stale(session: AsyncSession, status: ReminderStatus, older_than: datetime) -> list[Reminder]:
    """Reminders in ``status`` whose completion/cancellation happened before ``older_than``."""
    r = await session.execute(
        select(Reminder).where(
            Reminder.status == status.value,
            _stale_timestamp(status) < older_than,
        )
    )
    return list(r.scalars().all())


async def save(session: AsyncSession, reminder: Reminder) -> Reminder:
    session.add(reminder)
    await session.flush()
    return reminder


async def delete(session: AsyncSession, reminder: Reminder) -> None:
    await session.delete(reminder)
    await session.flush()


async def expire_share_links(session: AsyncSession, now: datetime) -> int:
    """Clear share fields on reminders whose link expired. Returns the number of reminders updated."""
    r = await session.execute(
        update(Reminder)
        .where(Reminder.is_shared.is_(True), Reminder.share_expires_at < now)
        .values(is_shared=False, share_token=None, shared_at=None, share_expires_at=None)
        .execution_options(synchronize_session=False)
    )
    return r.rowcount or 0


async def execute(session: AsyncSession, command: Command) -> None:
    """Apply one typed update command within the caller's transaction."""
    if isinstance(command, ClearPushSubscription):
        await session.execute(
            update(User).where(User.id == command.user_id).values(push_subscription=None)
        )
        logger.info("Push subscription cleared for user_id=%s", command.user_id)
    elif isinstance(command, AttachPushSubscription):
        await session.execute(
            update(User)
            .where(User.id == command.user_id)
            .values(push_subscription=command.subscription, push_enabled=True)
        )
    elif isinstance(command, RecordDeliveryOutcome):
        values = _delivery_values(command)
        if values:
            await session.execute(update(Reminder).where(Reminder.id == command.reminder_id).values(**values))
    elif isinstance(command, ReleaseSnooze):
        await session.execute(
            update(Reminder)
            .where(
                Reminder.id == command.reminder_id,
                Reminder.status == ReminderStatus.SNOOZED.value,
            )
            .values(**_release_values(command))
        )
    else:
        raise TypeError(f"Unknown command: {command!r}")


def _delivery_values(command: RecordDeliveryOutcome) -> dict[str, Any]:
    result = command.result
    if not result.attempted:
        return {}
    prefix = "push" if command.channel == Channel.WEB_PUSH else "email"
    if result.sent:
        return {f"{prefix}_sent": True, f"{prefix}_sent_at": command.at, f"{prefix}_error": None}
    error = result.error.value if result.error else "unknown"
    return {f"{prefix}_error": error}


def _release_values(command: ReleaseSnooze) -> dict[str, Any]:
    values: dict[str, Any] = {"status": ReminderStatus.PENDING.value, "snooze_until": None}
    if command.reset_delivery:
        values.update(push_sent=False, push_sent_at=None, email_sent=False, email_sent_at=None)
    return values
