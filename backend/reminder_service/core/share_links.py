"""Signed share-link tokens for reminders (JWT, HS256 with SECRET_KEY)."""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from reminder_service.config import settings

SHARE_TOKEN_TYPE = "reminder_share"
ALGORITHM = "HS256"


def create_share_token(reminder_id: int, shared_by: int, expires_at: datetime) -> str:
    payload = {
        "sub": str(reminder_id),
        "shared_by": str(shared_by),
        "type": SHARE_TOKEN_TYPE,
        "exp": expires_at,
    }
    result = jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)
    return result if isinstance(result, str) else result.decode("utf-8")


def share_expiry(hours: int | None = None, now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now + timedelta(hours=hours if hours is not None else settings.share_link_hours)


def decode_share_token(token: str) -> dict[str, Any] | None:
    """Claims of a valid, unexpired share token; None otherwise."""
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if claims.get("type") != SHARE_TOKEN_TYPE:
        return None
    return claims
