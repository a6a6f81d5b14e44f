import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from reminder_service.api.v1 import notifications as notifications_api
from reminder_service.api.v1 import scheduler as scheduler_api

# Ensure app loggers (scheduler, delivery, channels) print to stdout
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
logging.getLogger("reminder_service").setLevel(logging.DEBUG)
from reminder_service import __version__
from reminder_service.config import settings
from reminder_service.db.session import async_session_maker, init_db
from reminder_service.services.scheduler import ReminderScheduler
from prometheus_client import make_asgi_app

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings.validate_production()
    if not settings.push_configured:
        logger.warning("VAPID keys not set: web push disabled, reminders fall back to email")
    if not settings.email_configured:
        logger.warning("SMTP_HOST not set: email channel disabled")
    await init_db()

    scheduler = ReminderScheduler(async_session_maker)
    app.state.scheduler = scheduler
    scheduler.start()
    yield
    await scheduler.shutdown()


app = FastAPI(
    title="Reminder Service",
    description="Reminder scheduling and notification delivery: due scan, web push with email fallback, recurrence, cleanup",
    version=__version__,
    lifespan=lifespan,
)
app.include_router(scheduler_api.router, prefix="/api/v1")
app.include_router(notifications_api.router, prefix="/api/v1")

metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


@app.get("/health")
def health(request: Request):
    scheduler = getattr(request.app.state, "scheduler", None)
    return {"status": "ok", "scheduler": bool(scheduler and scheduler.is_running)}
