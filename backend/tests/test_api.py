"""Tests for operational HTTP endpoints: health, metrics, scheduler status and manual job runs."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from reminder_service.config import settings
from reminder_service.main import app
from reminder_service.services.scheduler import ReminderScheduler

from conftest import NOW, FakeChannel

ADMIN = {"X-Admin-Key": "test-admin-key"}


@pytest.fixture
def push():
    return FakeChannel()


@pytest_asyncio.fixture
async def client(session_maker, push):
    app.state.scheduler = ReminderScheduler(
        session_maker, push_sender=push, email_sender=FakeChannel(), clock=lambda: NOW, concurrency=1
    )
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.state.scheduler = None


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "scheduler": False}


@pytest.mark.asyncio
async def test_metrics_exposed(client: AsyncClient):
    r = await client.get("/metrics/")
    assert r.status_code == 200
    assert "reminder_scheduler_job_runs_total" in r.text


@pytest.mark.asyncio
async def test_status_requires_admin_key(client: AsyncClient):
    r = await client.get("/api/v1/scheduler/status")
    assert r.status_code == 401
    r = await client.get("/api/v1/scheduler/status", headers={"X-Admin-Key": "wrong"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_admin_api_disabled_without_key(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "admin_api_key", "")
    r = await client.get("/api/v1/scheduler/status", headers=ADMIN)
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_status(client: AsyncClient):
    r = await client.get("/api/v1/scheduler/status", headers=ADMIN)
    assert r.status_code == 200
    data = r.json()
    assert data["is_running"] is False
    assert data["total_jobs"] == 3
    assert set(data["jobs"]) == {"due", "recurring", "cleanup"}


@pytest.mark.asyncio
async def test_run_due_job(client: AsyncClient, make_user, make_reminder, push):
    """Manual trigger runs the due cycle immediately and returns its report."""
    user = await make_user()
    await make_reminder(user)
    r = await client.post("/api/v1/scheduler/jobs/due/run", headers=ADMIN)
    assert r.status_code == 200
    data = r.json()
    assert data["job"] == "due"
    assert data["status"] == "ok"
    assert data["result"]["sent"] == 1
    assert push.count == 1

    status = (await client.get("/api/v1/scheduler/status", headers=ADMIN)).json()
    assert status["jobs"]["due"]["runs"] == 1


@pytest.mark.asyncio
async def test_run_unknown_job(client: AsyncClient):
    r = await client.post("/api/v1/scheduler/jobs/backup/run", headers=ADMIN)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_scheduler_not_initialized(client: AsyncClient):
    app.state.scheduler = None
    r = await client.get("/api/v1/scheduler/status", headers=ADMIN)
    assert r.status_code == 503


# Notifications


@pytest.mark.asyncio
async def test_vapid_key_is_public(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "vapid_public_key", "BPublicKey")
    monkeypatch.setattr(settings, "vapid_private_key", "private")
    r = await client.get("/api/v1/notifications/vapid-key")
    assert r.status_code == 200
    assert r.json() == {"publicKey": "BPublicKey"}


@pytest.mark.asyncio
async def test_vapid_key_unavailable_without_keys(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "vapid_public_key", "")
    r = await client.get("/api/v1/notifications/vapid-key")
    assert r.status_code == 503


@pytest.mark.asyncio
async def test_channel_status(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "vapid_public_key", "BPublicKey")
    monkeypatch.setattr(settings, "vapid_private_key", "private")
    monkeypatch.setattr(settings, "smtp_host", "")
    assert (await client.get("/api/v1/notifications/status")).status_code == 401
    r = await client.get("/api/v1/notifications/status", headers=ADMIN)
    assert r.status_code == 200
    assert r.json() == {"vapid_configured": True, "email_configured": False}


@pytest.mark.asyncio
async def test_send_test_notification(client: AsyncClient, make_user, push):
    user = await make_user()
    assert (await client.post(f"/api/v1/notifications/users/{user.id}/test")).status_code == 401
    r = await client.post(f"/api/v1/notifications/users/{user.id}/test", headers=ADMIN)
    assert r.status_code == 200
    data = r.json()
    assert data["reminder_id"] is None
    assert data["web_push"]["sent"] is True
    assert push.count == 1


@pytest.mark.asyncio
async def test_send_test_notification_unknown_user(client: AsyncClient, push):
    r = await client.post("/api/v1/notifications/users/999/test", headers=ADMIN)
    assert r.status_code == 404
    assert push.count == 0
