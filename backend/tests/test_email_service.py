"""Tests for the email adapter (SMTP mocked) and reminder email rendering."""

import smtplib
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from reminder_service.config import settings
from reminder_service.models.reminder import Reminder
from reminder_service.models.user import User
from reminder_service.schemas.reminder import ErrorKind
from reminder_service.services.email_service import send_email
from reminder_service.services.email_templates import localized_test_notification, render_reminder_email


@pytest.fixture
def smtp(monkeypatch):
    """Configured SMTP settings and a mocked smtplib.SMTP; yields the server object."""
    monkeypatch.setattr(settings, "smtp_host", "smtp.test")
    monkeypatch.setattr(settings, "smtp_username", "mailer")
    monkeypatch.setattr(settings, "smtp_password", "secret")
    server = MagicMock()
    with patch("reminder_service.services.email_service.smtplib.SMTP") as smtp_cls:
        smtp_cls.return_value.__enter__.return_value = server
        yield server


def _reminder(**kwargs) -> Reminder:
    defaults = {
        "id": 7,
        "title": "Pay rent",
        "priority": "high",
        "tags": ["home", "money"],
        "scheduled_time": datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc),
    }
    defaults.update(kwargs)
    return Reminder(**defaults)


@pytest.mark.asyncio
async def test_send_without_smtp_host_is_not_configured(monkeypatch):
    monkeypatch.setattr(settings, "smtp_host", "")
    result = await send_email("a@test.com", "s", "t")
    assert result.error == ErrorKind.CHANNEL_NOT_CONFIGURED


@pytest.mark.asyncio
async def test_send_success(smtp):
    """Message goes out over STARTTLS with login; body has plain and html parts."""
    result = await send_email("a@test.com", "Reminder: Pay rent", "plain body", "<p>html body</p>")
    assert result.sent is True
    smtp.starttls.assert_called_once()
    smtp.login.assert_called_once_with("mailer", "secret")
    from_addr, to_addrs, raw = smtp.sendmail.call_args.args
    assert to_addrs == ["a@test.com"]
    assert "Subject: Reminder: Pay rent" in raw
    assert "multipart/alternative" in raw


@pytest.mark.asyncio
@pytest.mark.parametrize("address", ["", "not-an-address"])
async def test_malformed_address_is_recipient_invalid(smtp, address):
    result = await send_email(address, "s", "t")
    assert result.error == ErrorKind.RECIPIENT_INVALID
    smtp.sendmail.assert_not_called()


@pytest.mark.asyncio
async def test_refused_recipient_is_recipient_invalid(smtp):
    smtp.sendmail.side_effect = smtplib.SMTPRecipientsRefused({"a@test.com": (550, b"No such user")})
    result = await send_email("a@test.com", "s", "t")
    assert result.error == ErrorKind.RECIPIENT_INVALID


@pytest.mark.asyncio
@pytest.mark.parametrize("exc", [
    smtplib.SMTPServerDisconnected("gone"),
    smtplib.SMTPAuthenticationError(535, b"bad credentials"),
    ConnectionRefusedError("refused"),
    TimeoutError("timed out"),
])
async def test_smtp_errors_are_transport_failures(smtp, exc):
    smtp.sendmail.side_effect = exc
    result = await send_email("a@test.com", "s", "t")
    assert result.error == ErrorKind.TRANSPORT_FAILURE


def test_render_english_email():
    user = User(email="sara@test.com", first_name="Sara", language="en")
    subject, text, html = render_reminder_email(_reminder(description="Transfer to landlord"), user)
    assert subject == "Reminder: Pay rent"
    assert text.startswith("Hello Sara,")
    assert "Transfer to landlord" in text
    assert "https://reminders.test/dashboard" in text
    assert 'dir="ltr"' in html
    assert "#EF4444" in html
    assert "#home" in html and "#money" in html
    assert "https://reminders.test/dashboard/settings" in html


def test_render_persian_email_is_rtl():
    user = User(email="ali@test.com", username="ali", language="fa")
    subject, text, html = render_reminder_email(_reminder(), user)
    assert 'dir="rtl"' in html
    assert 'lang="fa"' in html
    assert "سلام ali" in text
    assert "Tahoma" in html


def test_render_escapes_user_content():
    user = User(email="x@test.com", language="en")
    _, _, html = render_reminder_email(_reminder(title="<script>alert(1)</script>"), user)
    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_unknown_language_falls_back_to_english():
    user = User(email="x@test.com", language="de")
    _, text, html = render_reminder_email(_reminder(), user)
    assert text.startswith("Hello x,")
    assert 'dir="ltr"' in html


def test_localized_test_notification():
    assert localized_test_notification("en") == (
        "Test Notification", "This is a test message to ensure notifications are working properly."
    )
    title, body = localized_test_notification("fa")
    assert title == "تست اعلان"
    assert body.startswith("این یک پیام تست است")
    assert localized_test_notification(None)[0] == "Test Notification"


def test_unsaved_reminder_links_plain_dashboard():
    user = User(email="x@test.com", language="en")
    _, _, html = render_reminder_email(_reminder(id=None), user)
    assert "?reminder=" not in html
    assert 'href="https://reminders.test/dashboard"' in html
