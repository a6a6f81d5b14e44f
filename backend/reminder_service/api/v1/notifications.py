"""Notification endpoints: VAPID public key for browser subscription, channel status, test notification."""

from fastapi import APIRouter, Depends, HTTPException

from reminder_service.api.deps import SchedulerDep, require_admin
from reminder_service.config import settings
from reminder_service.schemas.push import ChannelStatus, VapidKey
from reminder_service.schemas.reminder import DeliveryOutcome

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get(
    "/vapid-key",
    response_model=VapidKey,
    summary="VAPID public key for PushManager.subscribe",
    responses={503: {"description": "Web push not configured"}},
)
async def get_vapid_key() -> VapidKey:
    if not settings.push_configured:
        raise HTTPException(status_code=503, detail="Web push is not configured")
    return VapidKey(publicKey=settings.vapid_public_key.strip())


@router.get(
    "/status",
    response_model=ChannelStatus,
    summary="Which delivery channels are configured",
    dependencies=[Depends(require_admin)],
    responses={401: {"description": "Invalid admin key"}},
)
async def get_channel_status() -> ChannelStatus:
    return ChannelStatus(vapid_configured=settings.push_configured, email_configured=settings.email_configured)


@router.post(
    "/users/{user_id}/test",
    response_model=DeliveryOutcome,
    summary="Send a test notification to a user",
    dependencies=[Depends(require_admin)],
    responses={401: {"description": "Invalid admin key"}, 404: {"description": "User not found"}},
)
async def send_test(user_id: int, scheduler: SchedulerDep) -> DeliveryOutcome:
    """Localized test message through push with email fallback. No reminder is stored."""
    outcome = await scheduler.send_test_notification(user_id)
    if outcome is None:
        raise HTTPException(status_code=404, detail="User not found")
    return outcome
