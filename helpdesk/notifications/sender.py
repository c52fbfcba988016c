from __future__ import annotations

import asyncio
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Protocol

from helpdesk.core.config import Settings
from helpdesk.tickets.errors import NotificationDeliveryError


class NotificationSender(Protocol):
    async def send(self, *, to: str, sender: str, subject: str, body: str) -> None:
        ...


@dataclass(slots=True)
class SmtpNotificationSender:
    """Deliver HTML email through an SMTP relay.

    Port 465 uses implicit TLS; other ports upgrade with STARTTLS when the
    server offers it. The
    blocking ``smtplib`` session runs in a worker thread and every socket
    operation is bounded by ``timeout`` seconds.
    """

    host: str | None
    port: int = 587
    username: str | None = None
    password: str | None = None
    timeout: float = 10.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpNotificationSender":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            timeout=settings.smtp_timeout,
        )

    @property
    def configured(self) -> bool:
        return bool(self.host and self.username and self.password)

    async def send(self, *, to: str, sender: str, subject: str, body: str) -> None:
        if not self.configured:
            raise NotificationDeliveryError("SMTP settings are incomplete, cannot send email")

        try:
            message = EmailMessage()
            message["From"] = sender
            message["To"] = to
            message["Subject"] = subject
            message.set_content(body, subtype="html")
            await asyncio.to_thread(self._deliver, message)
        except (ValueError, OSError, smtplib.SMTPException) as exc:
            raise NotificationDeliveryError(f"Failed to send email to {to}: {exc}") from exc

    def _deliver(self, message: EmailMessage) -> None:
        if self.port == 465:
            client: smtplib.SMTP = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        else:
            client = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        with client:
            client.ehlo()
            if self.port != 465 and client.has_extn("starttls"):
                client.starttls()
                client.ehlo()
            client.login(self.username, self.password)
            client.send_message(message)
