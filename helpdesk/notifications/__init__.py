"""Outbound notifications for ticket events."""

from .notifier import TicketNotifier, render_requester_receipt, render_support_alert, ticket_link
from .sender import NotificationSender, SmtpNotificationSender

__all__ = [
    "NotificationSender",
    "SmtpNotificationSender",
    "TicketNotifier",
    "render_requester_receipt",
    "render_support_alert",
    "ticket_link",
]
