"""Tests for the due-item scanner."""

from datetime import timedelta

import pytest

from reminder_service.services.scanner import DueScanner

from conftest import NOW


@pytest.mark.asyncio
async def test_scan_empty_store(session_maker):
    assert await DueScanner(session_maker).scan(NOW) == []


@pytest.mark.asyncio
async def test_scan_returns_due_with_user_loaded(session_maker, make_user, make_reminder):
    """Due pending and expired-snooze reminders come back once each, with their owner."""
    user = await make_user(first_name="Sara")
    a = await make_reminder(user)
    b = await make_reminder(user, title="Call mom", status="snoozed", snooze_until=NOW - timedelta(minutes=2))
    await make_reminder(user, title="Later", scheduled_time=NOW + timedelta(hours=1))

    due = await DueScanner(session_maker).scan(NOW)

    assert sorted(r.id for r in due) == sorted([a.id, b.id])
    assert len({r.id for r in due}) == len(due)
    assert all(r.user.first_name == "Sara" for r in due)


@pytest.mark.asyncio
async def test_scan_is_read_only(session_maker, make_user, make_reminder):
    """Scanning twice yields the same result; nothing is claimed or modified."""
    user = await make_user()
    await make_reminder(user)
    scanner = DueScanner(session_maker)
    first = await scanner.scan(NOW)
    second = await scanner.scan(NOW)
    assert [r.id for r in first] == [r.id for r in second]
    assert first[0].status == "pending"
