"""
Delivery orchestrator: decide which channels to use for one due reminder,
attempt them in order (push first, email as fallback) and persist each
channel's outcome on the reminder.

Channel failures never raise out of deliver_reminder(); the caller gets a
DeliveryOutcome with both channel results.
"""
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from reminder_service.config import settings
from reminder_service.db.types import utcnow
from reminder_service.metrics import NOTIFICATIONS
from reminder_service.models.reminder import Reminder
from reminder_service.models.user import User
from reminder_service.schemas.reminder import Channel, ChannelResult, DeliveryOutcome, ErrorKind, Priority
from reminder_service.services import reminder_store
from reminder_service.services.email_service import send_email
from reminder_service.services.email_templates import render_reminder_email, localized_test_notification
from reminder_service.services.push_notifications import (
    build_reminder_payload,
    push_urgency,
    send_web_push,
    validate_subscription,
)
from reminder_service.services.reminder_store import ClearPushSubscription, RecordDeliveryOutcome

logger = logging.getLogger(__name__)

PushSender = Callable[..., Awaitable[ChannelResult]]
EmailSender = Callable[..., Awaitable[ChannelResult]]


def should_send_email(user: User, push_result: ChannelResult) -> bool:
    """Email is a fallback for a failed/unavailable push, or the only channel when push is off."""
    if not user.email_enabled:
        return False
    return (bool(user.email_fallback) and not push_result.sent) or not user.push_enabled


async def _attempt(channel: Channel, sender: Callable[..., Awaitable[ChannelResult]], *args, **kwargs) -> ChannelResult:
    try:
        result = await sender(*args, **kwargs)
    except Exception as e:
        logger.exception("Unexpected %s adapter error: %s", channel.value, e)
        result = ChannelResult.failed(ErrorKind.TRANSPORT_FAILURE, str(e))
    label = "sent" if result.sent else (result.error or ErrorKind.TRANSPORT_FAILURE).value
    NOTIFICATIONS.labels(channel.value, label).inc()
    return result


async def _send_channels(
    session: AsyncSession,
    reminder: Reminder,
    user: User,
    outcome: DeliveryOutcome,
    push_sender: PushSender,
    email_sender: EmailSender,
) -> None:
    if user.push_enabled and validate_subscription(user.push_subscription):
        payload = build_reminder_payload(reminder)
        outcome.web_push = await _attempt(
            Channel.WEB_PUSH,
            push_sender,
            user.push_subscription,
            payload,
            urgency=push_urgency(reminder.priority),
            ttl=settings.push_ttl_seconds,
        )
        if outcome.web_push.error == ErrorKind.SUBSCRIPTION_INVALID:
            await reminder_store.execute(session, ClearPushSubscription(user.id))

    if should_send_email(user, outcome.web_push):
        if not user.email:
            logger.debug("Reminder %s: email wanted but user_id=%s has no address", reminder.id, user.id)
        elif reminder.email_error == ErrorKind.RECIPIENT_INVALID.value:
            logger.debug("Reminder %s: address previously refused; not retrying email", reminder.id)
        else:
            subject, text, html = render_reminder_email(reminder, user)
            outcome.email = await _attempt(Channel.EMAIL, email_sender, user.email, subject, text, html)


async def deliver_reminder(
    session: AsyncSession,
    reminder: Reminder,
    user: User,
    *,
    push_sender: PushSender = send_web_push,
    email_sender: EmailSender = send_email,
    now: datetime | None = None,
) -> DeliveryOutcome:
    """Send one reminder to its owner. Writes go through the caller's session; caller commits."""
    now = now or utcnow()
    outcome = DeliveryOutcome(reminder_id=reminder.id)

    if reminder.is_delivered:
        logger.debug("Reminder %s already delivered; nothing to send", reminder.id)
        outcome.web_push = ChannelResult(sent=bool(reminder.push_sent))
        outcome.email = ChannelResult(sent=bool(reminder.email_sent))
        return outcome

    await _send_channels(session, reminder, user, outcome, push_sender, email_sender)

    for channel, result in ((Channel.WEB_PUSH, outcome.web_push), (Channel.EMAIL, outcome.email)):
        if result.attempted:
            await reminder_store.execute(session, RecordDeliveryOutcome(reminder.id, channel, result, now))

    logger.debug(
        "Reminder %s delivery: push=%s email=%s",
        reminder.id,
        outcome.web_push.error or outcome.web_push.sent,
        outcome.email.error or outcome.email.sent,
    )
    return outcome


async def deliver_test_notification(
    session: AsyncSession,
    user: User,
    *,
    push_sender: PushSender = send_web_push,
    email_sender: EmailSender = send_email,
    now: datetime | None = None,
) -> DeliveryOutcome:
    """
    Send a localized "Test Notification" through the same push / email fallback path.
    The reminder is built in memory only; nothing is persisted except clearing a dead subscription.
    """
    title, body = localized_test_notification(user.language)
    reminder = Reminder(
        user_id=user.id,
        title=title,
        description=body,
        scheduled_time=now or utcnow(),
        priority=Priority.MEDIUM.value,
        tags=["test"],
    )
    outcome = DeliveryOutcome()
    await _send_channels(session, reminder, user, outcome, push_sender, email_sender)
    logger.info(
        "Test notification user_id=%s: push=%s email=%s",
        user.id,
        outcome.web_push.error or outcome.web_push.sent,
        outcome.email.error or outcome.email.sent,
    )
    return outcome
