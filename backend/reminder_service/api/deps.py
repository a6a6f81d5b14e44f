"""FastAPI dependencies: admin key check, scheduler instance from app state."""

import hmac
from typing import Annotated

from fastapi import Depends, HTTPException, Request

from reminder_service.config import settings
from reminder_service.services.scheduler import ReminderScheduler


async def require_admin(request: Request) -> None:
    """Operational endpoints require X-Admin-Key == ADMIN_API_KEY. Disabled (403) when no key is configured."""
    expected = settings.admin_api_key.strip()
    if not expected:
        raise HTTPException(status_code=403, detail="Admin API disabled")
    provided = request.headers.get("X-Admin-Key", "")
    if not provided or not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(status_code=401, detail="Invalid admin key")


def get_scheduler(request: Request) -> ReminderScheduler:
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        raise HTTPException(status_code=503, detail="Scheduler not initialized")
    return scheduler


SchedulerDep = Annotated[ReminderScheduler, Depends(get_scheduler)]
