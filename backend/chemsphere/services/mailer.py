"""Outbound email over SMTP.

smtplib is blocking, so sends run in a worker thread. With no SMTP host
configured (development, tests) messages are written to the log instead.
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from chemsphere.config import settings

logger = logging.getLogger(__name__)


def _send_sync(message: EmailMessage) -> None:
    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as smtp:
        if settings.smtp_use_tls:
            smtp.starttls()
        if settings.smtp_username:
            smtp.login(settings.smtp_username, settings.smtp_password)
        smtp.send_message(message)


async def send_email(to: str, subject: str, body: str) -> bool:
    """Send a plain-text email. Returns True once handed to the server."""
    message = EmailMessage()
    message["From"] = settings.mail_from
    message["To"] = to
    message["Subject"] = subject
    message.set_content(body)

    if not settings.smtp_host:
        logger.info("SMTP not configured; email to %s not sent: %s", to, subject)
        logger.debug("Email body:\n%s", body)
        return False

    await asyncio.to_thread(_send_sync, message)
    logger.info("Sent email to %s: %s", to, subject)
    return True
