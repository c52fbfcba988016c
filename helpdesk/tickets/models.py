from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .state import AuthorRole, TicketStatus


@dataclass(slots=True)
class Ticket:
    """Aggregate representing a support request."""

    id: str
    subject: str
    location: str
    email: str
    requester_name: str | None
    details: str
    status: TicketStatus
    created_at: datetime
    updated_at: datetime
    last_message_at: datetime | None = None


@dataclass(slots=True)
class TicketMessage:
    """Note exchanged on a ticket by the requester or an agent."""

    id: int
    ticket_id: str
    text: str
    author_role: AuthorRole
    author_id: str | None
    created_at: datetime


@dataclass(slots=True)
class TicketDraft:
    """Raw input for opening a ticket, prior to validation."""

    subject: str
    location: str
    email: str
    details: str
    name: str | None = None


@dataclass(slots=True)
class MessageDraft:
    """Validated message content waiting to be appended by a store."""

    text: str
    author_role: AuthorRole
    author_id: str | None
    created_at: datetime
