"""
Email channel: SMTP delivery of reminder notifications.

smtplib is blocking, so the send runs in the thread pool. Failures are
classified instead of raised: refused recipients are permanent for that
address, everything else is treated as transient.
"""
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import parseaddr

from starlette.concurrency import run_in_threadpool

from reminder_service.config import settings
from reminder_service.schemas.reminder import ChannelResult, ErrorKind

logger = logging.getLogger(__name__)


def _build_message(to: str, subject: str, text: str, html: str | None) -> MIMEMultipart:
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = settings.email_from
    msg["To"] = to
    msg.attach(MIMEText(text, "plain", "utf-8"))
    msg.attach(MIMEText(html or text, "html", "utf-8"))
    return msg


def _send_sync(msg: MIMEMultipart, to: str) -> None:
    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout_seconds) as server:
        if settings.smtp_use_tls:
            server.starttls(context=ssl.create_default_context())
        if settings.smtp_username and settings.smtp_password:
            server.login(settings.smtp_username, settings.smtp_password)
        server.sendmail(parseaddr(settings.email_from)[1] or settings.email_from, [to], msg.as_string())


async def send_email(to: str, subject: str, text: str, html: str | None = None) -> ChannelResult:
    """Send one email. Never raises; failures are classified into ChannelResult.error."""
    if not settings.email_configured:
        logger.debug("Email skipped: SMTP not configured")
        return ChannelResult.failed(ErrorKind.CHANNEL_NOT_CONFIGURED, "SMTP not configured")
    address = parseaddr(to or "")[1]
    if not address or "@" not in address:
        return ChannelResult.failed(ErrorKind.RECIPIENT_INVALID, f"Invalid address: {to!r}")
    msg = _build_message(address, subject, text, html)
    try:
        await run_in_threadpool(_send_sync, msg, address)
    except smtplib.SMTPRecipientsRefused as e:
        logger.warning("Email recipient refused: %s", address)
        return ChannelResult.failed(ErrorKind.RECIPIENT_INVALID, str(e.recipients))
    except (smtplib.SMTPException, OSError) as e:
        logger.warning("Email send failed: %s", e)
        return ChannelResult.failed(ErrorKind.TRANSPORT_FAILURE, str(e))
    logger.debug("Email sent to %s", address)
    return ChannelResult.ok()
