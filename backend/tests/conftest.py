"""Pytest configuration and shared fixtures: per-test SQLite database, factories, fake channels."""

import itertools
import os
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

# Set config before app imports so settings/engine pick it up
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-" + "x" * 32)
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
os.environ.setdefault("BASE_URL", "https://reminders.test")

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from reminder_service.db.base import Base
from reminder_service.models.reminder import Reminder
from reminder_service.models.user import User
from reminder_service.schemas.reminder import ChannelResult, ErrorKind

_user_seq = itertools.count(1)

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)

SUBSCRIPTION = {
    "endpoint": "https://push.example.com/send/abc123",
    "keys": {"p256dh": "BNcRdreALRFXTkOOUHK1EtK2wtaz5Ry4YfYCA_0QTpQtUbVlUls0VJXg7A8u-Ts1XbjhazAkj7I99e8QcYP7DkM", "auth": "tBHItJI5svbpez7KI4CCXg"},
}


class FakeChannel:
    """Async stand-in for a channel adapter: records calls, returns queued results (default: sent)."""

    def __init__(self, *results: ChannelResult):
        self.results = list(results)
        self.calls: list[tuple[tuple, dict]] = []

    async def __call__(self, *args, **kwargs) -> ChannelResult:
        self.calls.append((args, kwargs))
        if self.results:
            result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
            if isinstance(result, Exception):
                raise result
            return result
        return ChannelResult.ok()

    @property
    def count(self) -> int:
        return len(self.calls)


def gone() -> ChannelResult:
    return ChannelResult.failed(ErrorKind.SUBSCRIPTION_INVALID, "HTTP 410")


def transport_failure() -> ChannelResult:
    return ChannelResult.failed(ErrorKind.TRANSPORT_FAILURE, "connection reset")


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest_asyncio.fixture
async def engine(tmp_path):
    """File-backed SQLite per test so separate sessions see each other's commits."""
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'reminders.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as s:
        yield s


@pytest.fixture
def make_user(session):
    """Create and commit a user; keyword args override notification settings."""

    async def _make(**kwargs) -> User:
        defaults = {
            "email": f"user{next(_user_seq)}@test.com",
            "username": "tester",
            "language": "en",
            "timezone": "UTC",
            "push_enabled": True,
            "push_subscription": dict(SUBSCRIPTION),
            "email_enabled": True,
            "email_fallback": True,
        }
        defaults.update(kwargs)
        user = User(**defaults)
        session.add(user)
        await session.commit()
        return user

    return _make


@pytest.fixture
def make_reminder(session):
    """Create and commit a reminder for a user, due one minute before NOW by default."""

    async def _make(user: User, **kwargs) -> Reminder:
        defaults = {
            "user_id": user.id,
            "title": "Pay rent",
            "tags": [],
            "priority": "medium",
            "scheduled_time": NOW - timedelta(minutes=1),
            "status": "pending",
        }
        defaults.update(kwargs)
        reminder = Reminder(**defaults)
        session.add(reminder)
        await session.commit()
        return reminder

    return _make
