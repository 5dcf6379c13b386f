"""
Email notifier using async SMTP (aiosmtplib).

Delivery is bounded by EMAIL_TIMEOUT_SECONDS. Every failure, including missing SMTP
configuration and timeouts, is returned as a failed DeliveryResult instead of raised.
"""

import asyncio
import logging
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Optional

import aiosmtplib

from app.core.config import Settings, settings as default_settings
from app.notifications import templates
from app.notifications.base import DeliveryResult

logger = logging.getLogger(__name__)


class EmailNotifier:
    def __init__(self, config: Optional[Settings] = None) -> None:
        self.config = config or default_settings

    @property
    def is_configured(self) -> bool:
        c = self.config
        return all([c.smtp_host, c.smtp_username, c.smtp_password, c.smtp_from_email])

    async def send_approval(
        self, email: str, name: str, student_code: str, temp_password: str
    ) -> DeliveryResult:
        login_url = f"{self.config.frontend_url.rstrip('/')}/login"
        subject, text, html = templates.approval_email(name, email, student_code, temp_password, login_url)
        return await self._send(email, subject, text, html)

    async def send_rejection(self, email: str, name: str, reason: Optional[str]) -> DeliveryResult:
        subject, text, html = templates.rejection_email(name, reason)
        return await self._send(email, subject, text, html)

    def _build_message(self, to: str, subject: str, text: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = f"{self.config.smtp_from_name} <{self.config.smtp_from_email}>"
        message["To"] = to
        message["Subject"] = subject
        message["Message-ID"] = make_msgid()
        message.set_content(text)
        message.add_alternative(html, subtype="html")
        return message

    async def _send(self, to: str, subject: str, text: str, html: str) -> DeliveryResult:
        if not self.is_configured:
            logger.warning("Email not sent to %s: SMTP configuration incomplete", to)
            return DeliveryResult.failed("SMTP configuration incomplete")

        message = self._build_message(to, subject, text, html)
        timeout = self.config.email_timeout_seconds
        try:
            await asyncio.wait_for(
                aiosmtplib.send(
                    message,
                    hostname=self.config.smtp_host,
                    port=self.config.smtp_port,
                    username=self.config.smtp_username,
                    password=self.config.smtp_password,
                    start_tls=self.config.smtp_use_tls,
                    timeout=timeout,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Email to %s timed out after %ss", to, timeout)
            return DeliveryResult.failed(f"Email delivery timed out after {timeout}s")
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email to %s: %s", to, e, exc_info=True)
            return DeliveryResult.failed(f"SMTP error: {e}")

        logger.info("Email sent to %s: %s", to, subject)
        return DeliveryResult(success=True, message_id=message["Message-ID"])


_notifier: Optional[EmailNotifier] = None


def get_notifier() -> EmailNotifier:
    """FastAPI dependency: process-wide notifier."""
    global _notifier
    if _notifier is None:
        _notifier = EmailNotifier()
    return _notifier
