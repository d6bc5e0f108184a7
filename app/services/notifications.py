"""Outgoing account email: dispatcher contract plus SMTP and log-only senders."""

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of one send. Senders report failure here instead of raising."""

    success: bool
    message_id: str | None = None
    error: str | None = None


class NotificationDispatcher(Protocol):
    def send(self, recipient: str, subject: str, html_body: str) -> DispatchResult: ...


class SmtpNotificationDispatcher:
    """Sends HTML email over SMTP, one connection per message."""

    def __init__(self, settings: "Settings") -> None:
        self._host = settings.SMTP_HOST or ""
        self._port = settings.SMTP_PORT
        self._username = settings.SMTP_USERNAME
        self._password = (
            settings.SMTP_PASSWORD.get_secret_value() if settings.SMTP_PASSWORD else None
        )
        self._use_tls = settings.SMTP_USE_TLS
        self._timeout = settings.SMTP_TIMEOUT_SEC
        self._sender = settings.MAIL_FROM

    def _build_message(self, recipient: str, subject: str, html_body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self._sender
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content("This message requires an HTML-capable email client.")
        message.add_alternative(html_body, subtype="html")
        return message

    def send(self, recipient: str, subject: str, html_body: str) -> DispatchResult:
        message = self._build_message(recipient, subject, html_body)
        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as conn:
                if self._use_tls:
                    conn.starttls()
                if self._username and self._password:
                    conn.login(self._username, self._password)
                conn.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(
                "Email send failed",
                extra={"subject": subject, "reason": str(e)[:500]},
            )
            return DispatchResult(success=False, error=str(e))
        message_id = message.get("Message-ID")
        logger.info("Email sent", extra={"subject": subject})
        return DispatchResult(success=True, message_id=message_id)


class LogNotificationDispatcher:
    """Used when SMTP is not configured: records that a message would have been sent."""

    def send(self, recipient: str, subject: str, html_body: str) -> DispatchResult:
        logger.info(
            "SMTP not configured; email not delivered",
            extra={"subject": subject, "body_length": len(html_body)},
        )
        return DispatchResult(success=True)


def build_dispatcher(settings: "Settings") -> NotificationDispatcher:
    """Pick the SMTP sender when SMTP_HOST is set, else the log-only one."""
    if settings.SMTP_HOST:
        return SmtpNotificationDispatcher(settings)
    return LogNotificationDispatcher()
