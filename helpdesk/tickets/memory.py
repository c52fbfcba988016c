"""
In-memory storage implementation for tickets.
"""

from __future__ import annotations

import itertools
from dataclasses import replace
from datetime import datetime
from typing import Sequence

from .models import MessageDraft, Ticket, TicketMessage
from .state import TicketStatus


class InMemoryTicketRepository:
    """Process-local ticket store.

    Every method completes without awaiting, so a message append and its
    ticket summary update are never interleaved with another coroutine.
    """

    def __init__(self) -> None:
        self._tickets: dict[str, Ticket] = {}
        self._messages: dict[str, list[TicketMessage]] = {}
        self._message_ids = itertools.count(1)

    async def create_ticket(self, ticket: Ticket) -> bool:
        if ticket.id in self._tickets:
            return False
        self._tickets[ticket.id] = replace(ticket)
        self._messages[ticket.id] = []
        return True

    async def get_ticket(self, ticket_id: str) -> Ticket | None:
        ticket = self._tickets.get(ticket_id)
        return replace(ticket) if ticket is not None else None

    async def list_tickets(self, *, limit: int) -> Sequence[Ticket]:
        # Newest activity first; tickets without messages go last.
        ordered = sorted(
            self._tickets.values(),
            key=lambda ticket: (
                ticket.last_message_at is not None,
                ticket.last_message_at or ticket.created_at,
                ticket.created_at,
            ),
            reverse=True,
        )
        return [replace(ticket) for ticket in ordered[:limit]]

    async def update_status(self, ticket_id: str, status: TicketStatus, updated_at: datetime) -> Ticket | None:
        ticket = self._tickets.get(ticket_id)
        if ticket is None:
            return None
        ticket.status = status
        ticket.updated_at = updated_at
        return replace(ticket)

    async def append_message(
        self, ticket_id: str, draft: MessageDraft, *, status: TicketStatus | None = None
    ) -> TicketMessage | None:
        ticket = self._tickets.get(ticket_id)
        if ticket is None:
            return None

        message = TicketMessage(
            id=next(self._message_ids),
            ticket_id=ticket_id,
            text=draft.text,
            author_role=draft.author_role,
            author_id=draft.author_id,
            created_at=draft.created_at,
        )
        self._messages[ticket_id].append(message)

        if status is not None:
            ticket.status = status
        ticket.updated_at = draft.created_at
        if ticket.last_message_at is None or draft.created_at > ticket.last_message_at:
            ticket.last_message_at = draft.created_at
        return replace(message)

    async def list_messages(self, ticket_id: str) -> Sequence[TicketMessage]:
        messages = self._messages.get(ticket_id, [])
        ordered = sorted(messages, key=lambda message: (message.created_at, message.id))
        return [replace(message) for message in ordered]

    def count(self) -> int:
        """Number of stored tickets; used by tests to assert nothing was written."""
        return len(self._tickets)
