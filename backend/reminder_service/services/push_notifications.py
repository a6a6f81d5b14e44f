"""Web Push notifications: send to browser subscriptions via VAPID (pywebpush)."""

import json
import logging
import time
from typing import Any

from pydantic import ValidationError
from pywebpush import WebPushException, webpush
from starlette.concurrency import run_in_threadpool

from reminder_service.config import settings
from reminder_service.schemas.push import PushAction, PushPayload, PushSubscription
from reminder_service.schemas.reminder import ChannelResult, ErrorKind, Priority

logger = logging.getLogger(__name__)

# Push services answer 404/410 for endpoints that will never work again
GONE_STATUS_CODES = frozenset({404, 410})


def validate_subscription(subscription: dict[str, Any] | None) -> bool:
    """True if subscription has endpoint and both p256dh/auth keys."""
    if not subscription or not isinstance(subscription, dict):
        return False
    try:
        PushSubscription.model_validate(subscription)
    except ValidationError:
        return False
    return True


def push_urgency(priority: str) -> str:
    return "high" if priority == Priority.URGENT.value else "normal"


def build_reminder_payload(reminder) -> PushPayload:
    """Notification shown by the service worker, with complete/snooze actions."""
    ref = reminder.id if reminder.id is not None else "test"
    body = reminder.description or f"Reminder scheduled for {reminder.scheduled_time:%Y-%m-%d %H:%M} UTC"
    return PushPayload(
        title=f"⏰ {reminder.title}",
        body=body[:200],
        icon=settings.push_icon,
        badge=settings.push_badge,
        tag=f"reminder-{ref}",
        data={
            "reminderId": str(ref),
            "url": f"/dashboard?reminder={ref}",
            "timestamp": int(time.time() * 1000),
        },
        actions=[
            PushAction(action="complete", title="Mark Complete", icon="/icons/check.png"),
            PushAction(action="snooze", title=f"Snooze {settings.default_snooze_minutes}min", icon="/icons/snooze.png"),
        ],
        requireInteraction=reminder.priority == Priority.URGENT.value,
        silent=False,
    )


def _status_code(exc: WebPushException) -> int | None:
    response = getattr(exc, "response", None)
    return getattr(response, "status_code", None) if response is not None else None


async def send_web_push(
    subscription: dict[str, Any],
    payload: PushPayload,
    *,
    urgency: str = "normal",
    ttl: int | None = None,
) -> ChannelResult:
    """Send one push message. Never raises; failures are classified into ChannelResult.error."""
    if not settings.push_configured:
        logger.debug("Web push skipped: VAPID keys not configured")
        return ChannelResult.failed(ErrorKind.CHANNEL_NOT_CONFIGURED, "VAPID keys not configured")
    if not validate_subscription(subscription):
        return ChannelResult.failed(ErrorKind.SUBSCRIPTION_INVALID, "Malformed push subscription")
    try:
        response = await run_in_threadpool(
            webpush,
            subscription_info=subscription,
            data=json.dumps(payload.model_dump(), ensure_ascii=False),
            vapid_private_key=settings.vapid_private_key.strip(),
            vapid_claims={"sub": settings.vapid_subject},
            ttl=ttl if ttl is not None else settings.push_ttl_seconds,
            headers={"Urgency": urgency},
            timeout=30,
        )
    except WebPushException as e:
        status = _status_code(e)
        if status in GONE_STATUS_CODES:
            logger.info("Web push endpoint gone (%s)", status)
            return ChannelResult.failed(ErrorKind.SUBSCRIPTION_INVALID, f"HTTP {status}")
        logger.warning("Web push send failed (status=%s): %s", status, e)
        return ChannelResult.failed(ErrorKind.TRANSPORT_FAILURE, str(e))
    except Exception as e:
        logger.warning("Web push transport error: %s", e)
        return ChannelResult.failed(ErrorKind.TRANSPORT_FAILURE, str(e))
    logger.debug("Web push sent: status=%s", getattr(response, "status_code", None))
    return ChannelResult.ok()
