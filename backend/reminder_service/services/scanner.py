"""Due-item scanner: read-only lookup of reminders whose trigger has passed."""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from reminder_service.db.types import utcnow
from reminder_service.models.reminder import Reminder
from reminder_service.services import reminder_store

logger = logging.getLogger(__name__)


class DueScanner:
    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def scan(self, now: datetime | None = None) -> list[Reminder]:
        """Due reminders (owning user loaded), one entry per id. No ordering guarantee."""
        now = now or utcnow()
        async with self._session_maker() as session:
            rows = await reminder_store.find_due(session, now)
        seen: set[int] = set()
        due: list[Reminder] = []
        for reminder in rows:
            if reminder.id in seen:
                continue
            seen.add(reminder.id)
            due.append(reminder)
        logger.debug("Scan at %s: %s due reminders", now.isoformat(), len(due))
        return due
