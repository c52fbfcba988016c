"""Best-effort email notifications triggered by ticket writes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from html import escape

from helpdesk.core.config import Settings
from helpdesk.tickets.errors import NotificationDeliveryError
from helpdesk.tickets.models import Ticket

from .sender import NotificationSender

logger = logging.getLogger(__name__)


def ticket_link(base_url: str, ticket_id: str) -> str:
    return f"{base_url.rstrip('/')}/ticket/{ticket_id}"


def render_support_alert(ticket: Ticket, link: str) -> tuple[str, str]:
    """Return the subject and HTML body sent to the support queue."""

    body = (
        f"New ticket <b>{escape(ticket.id)}</b><br/>\n"
        f"Subject: {escape(ticket.subject)}<br/>\n"
        f"Location: {escape(ticket.location)}<br/>\n"
        f"From: {escape(ticket.email)}<br/>\n"
        f"Details:<br/><pre>{escape(ticket.details)}</pre><br/>\n"
        f'<a href="{escape(link)}">Open Ticket</a>'
    )
    return f"New Ticket {ticket.id}", body


def render_requester_receipt(ticket: Ticket, link: str) -> tuple[str, str]:
    """Return the subject and HTML body of the requester's confirmation."""

    greeting = f"Hi {escape(ticket.requester_name)}" if ticket.requester_name else "Hi"
    body = (
        f"{greeting},<br/><br/>\n"
        "We have received your helpdesk request.<br/><br/>\n"
        f"<b>Ticket ID:</b> {escape(ticket.id)}<br/>\n"
        f"<b>Subject:</b> {escape(ticket.subject)}<br/>\n"
        f"<b>Location:</b> {escape(ticket.location)}<br/><br/>\n"
        "You can view and reply to your ticket here:<br/>\n"
        f'<a href="{escape(link)}">{escape(link)}</a><br/><br/>\n'
        "Thanks,<br/>\n"
        "Helpdesk"
    )
    return f"We received your ticket ({ticket.id})", body


@dataclass(slots=True)
class TicketNotifier:
    """Send ticket emails; delivery failures are logged and never raised."""

    sender: NotificationSender
    from_address: str | None = None
    support_address: str | None = None
    base_url: str = ""

    @classmethod
    def from_settings(cls, settings: Settings, sender: NotificationSender) -> "TicketNotifier":
        return cls(
            sender=sender,
            from_address=settings.alert_email_from,
            support_address=settings.alert_email_to,
            base_url=settings.public_base_url,
        )

    async def ticket_created(self, ticket: Ticket) -> int:
        """Notify the support queue and the requester. Returns the number of emails sent."""

        link = ticket_link(self.base_url, ticket.id)
        sent = 0

        subject, body = render_support_alert(ticket, link)
        if await self._deliver(self.support_address, subject, body, ticket_id=ticket.id, audience="helpdesk"):
            sent += 1

        subject, body = render_requester_receipt(ticket, link)
        if await self._deliver(ticket.email, subject, body, ticket_id=ticket.id, audience="requester"):
            sent += 1
        return sent

    async def _deliver(self, to: str | None, subject: str, body: str, *, ticket_id: str, audience: str) -> bool:
        if not to or not self.from_address:
            logger.info("Skipping %s email for %s: address not configured", audience, ticket_id)
            return False
        try:
            await self.sender.send(to=to, sender=self.from_address, subject=subject, body=body)
        except NotificationDeliveryError as exc:
            logger.error("Email send failed for %s on ticket %s: %s", audience, ticket_id, exc)
            return False
        except Exception:
            logger.exception("Unexpected error sending %s email for ticket %s", audience, ticket_id)
            return False
        return True
