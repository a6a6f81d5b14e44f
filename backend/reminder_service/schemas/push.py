"""Web Push subscription and notification payload."""

from typing import Any

from pydantic import BaseModel, Field


class PushKeys(BaseModel):
    p256dh: str = Field(..., min_length=1)
    auth: str = Field(..., min_length=1)


class PushSubscription(BaseModel):
    """Browser PushSubscription.toJSON() shape."""

    endpoint: str = Field(..., min_length=1)
    keys: PushKeys


class PushAction(BaseModel):
    action: str
    title: str
    icon: str | None = None


class PushPayload(BaseModel):
    """JSON body delivered to the service worker."""

    title: str
    body: str
    icon: str
    badge: str
    tag: str
    data: dict[str, Any]
    actions: list[PushAction] = []
    requireInteraction: bool = False
    silent: bool = False


class VapidKey(BaseModel):
    publicKey: str


class ChannelStatus(BaseModel):
    vapid_configured: bool
    email_configured: bool
