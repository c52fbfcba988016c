"""Ticket and message lifecycle."""

from .errors import (
    InvalidStatusError,
    NotificationDeliveryError,
    TicketIdCollisionError,
    TicketNotFoundError,
    TicketServiceError,
    TicketValidationError,
    UnauthorizedError,
)
from .memory import InMemoryTicketRepository
from .models import MessageDraft, Ticket, TicketDraft, TicketMessage
from .repository import TicketRepository, TicketStore
from .service import TicketService
from .state import STATUS_PRIORITY, AuthorRole, TicketStateMachine, TicketStatus

__all__ = [
    "AuthorRole",
    "InMemoryTicketRepository",
    "InvalidStatusError",
    "MessageDraft",
    "NotificationDeliveryError",
    "STATUS_PRIORITY",
    "Ticket",
    "TicketDraft",
    "TicketIdCollisionError",
    "TicketMessage",
    "TicketNotFoundError",
    "TicketRepository",
    "TicketService",
    "TicketServiceError",
    "TicketStateMachine",
    "TicketStatus",
    "TicketStore",
    "TicketValidationError",
    "UnauthorizedError",
]
