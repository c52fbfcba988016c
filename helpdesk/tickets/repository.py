from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Protocol, Sequence

import asyncpg

from .models import MessageDraft, Ticket, TicketMessage
from .state import AuthorRole, TicketStatus


class TicketStore(Protocol):
    """Durable storage contract used by the ticket service."""

    async def create_ticket(self, ticket: Ticket) -> bool:
        ...

    async def get_ticket(self, ticket_id: str) -> Ticket | None:
        ...

    async def list_tickets(self, *, limit: int) -> Sequence[Ticket]:
        ...

    async def update_status(self, ticket_id: str, status: TicketStatus, updated_at: datetime) -> Ticket | None:
        ...

    async def append_message(
        self, ticket_id: str, draft: MessageDraft, *, status: TicketStatus | None = None
    ) -> TicketMessage | None:
        ...

    async def list_messages(self, ticket_id: str) -> Sequence[TicketMessage]:
        ...


class TicketRepository:
    """PostgreSQL persistence for `tickets` and their `ticket_messages`."""

    _CREATE_TICKETS_SQL = """
    CREATE TABLE IF NOT EXISTS tickets (
        id TEXT PRIMARY KEY,
        subject TEXT NOT NULL,
        location TEXT NOT NULL,
        email TEXT NOT NULL,
        requester_name TEXT NULL,
        details TEXT NOT NULL,
        status TEXT NOT NULL,
        created_at TIMESTAMPTZ NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL,
        last_message_at TIMESTAMPTZ NULL
    )
    """

    _CREATE_MESSAGES_SQL = """
    CREATE TABLE IF NOT EXISTS ticket_messages (
        id BIGSERIAL PRIMARY KEY,
        ticket_id TEXT NOT NULL REFERENCES tickets(id),
        text TEXT NOT NULL,
        author_role TEXT NOT NULL,
        author_id TEXT NULL,
        created_at TIMESTAMPTZ NOT NULL
    )
    """

    _CREATE_INDEXES_SQL = """
    CREATE INDEX IF NOT EXISTS ix_tickets_last_message_at ON tickets (last_message_at DESC NULLS LAST);
    CREATE INDEX IF NOT EXISTS ix_ticket_messages_ticket_id ON ticket_messages (ticket_id, created_at, id);
    """

    _INSERT_TICKET_SQL = """
    INSERT INTO tickets (id, subject, location, email, requester_name, details, status, created_at, updated_at, last_message_at)
    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
    ON CONFLICT (id) DO NOTHING
    RETURNING id
    """

    _SELECT_TICKET_SQL = """
    SELECT id, subject, location, email, requester_name, details, status, created_at, updated_at, last_message_at
    FROM tickets
    WHERE id = $1
    """

    _SELECT_TICKETS_SQL = """
    SELECT id, subject, location, email, requester_name, details, status, created_at, updated_at, last_message_at
    FROM tickets
    ORDER BY last_message_at DESC NULLS LAST, created_at DESC
    LIMIT $1
    """

    _UPDATE_STATUS_SQL = """
    UPDATE tickets
    SET status = $2, updated_at = $3
    WHERE id = $1
    RETURNING id, subject, location, email, requester_name, details, status, created_at, updated_at, last_message_at
    """

    # GREATEST ignores NULL, so the first message simply sets last_message_at.
    _TOUCH_FOR_MESSAGE_SQL = """
    UPDATE tickets
    SET status = COALESCE($2, status),
        updated_at = $3,
        last_message_at = GREATEST(last_message_at, $3)
    WHERE id = $1
    RETURNING id
    """

    _INSERT_MESSAGE_SQL = """
    INSERT INTO ticket_messages (ticket_id, text, author_role, author_id, created_at)
    VALUES ($1, $2, $3, $4, $5)
    RETURNING id, ticket_id, text, author_role, author_id, created_at
    """

    _SELECT_MESSAGES_SQL = """
    SELECT id, ticket_id, text, author_role, author_id, created_at
    FROM ticket_messages
    WHERE ticket_id = $1
    ORDER BY created_at ASC, id ASC
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def ensure_schema(self) -> None:
        async with self._pool.acquire() as connection:
            await connection.execute(self._CREATE_TICKETS_SQL)
            await connection.execute(self._CREATE_MESSAGES_SQL)
            await connection.execute(self._CREATE_INDEXES_SQL)

    async def create_ticket(self, ticket: Ticket) -> bool:
        """Insert ``ticket``; return ``False`` when its id is already taken."""

        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(
                self._INSERT_TICKET_SQL,
                ticket.id,
                ticket.subject,
                ticket.location,
                ticket.email,
                ticket.requester_name,
                ticket.details,
                ticket.status.value,
                ticket.created_at,
                ticket.updated_at,
                ticket.last_message_at,
            )
        return row is not None

    async def get_ticket(self, ticket_id: str) -> Ticket | None:
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(self._SELECT_TICKET_SQL, ticket_id)
        if row is None:
            return None
        return self._row_to_ticket(row)

    async def list_tickets(self, *, limit: int) -> Sequence[Ticket]:
        async with self._pool.acquire() as connection:
            rows = await connection.fetch(self._SELECT_TICKETS_SQL, limit)
        return [self._row_to_ticket(row) for row in rows]

    async def update_status(self, ticket_id: str, status: TicketStatus, updated_at: datetime) -> Ticket | None:
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(self._UPDATE_STATUS_SQL, ticket_id, status.value, updated_at)
        if row is None:
            return None
        return self._row_to_ticket(row)

    async def append_message(
        self, ticket_id: str, draft: MessageDraft, *, status: TicketStatus | None = None
    ) -> TicketMessage | None:
        """Insert a message and refresh the ticket summary in one transaction.

        Returns ``None`` without writing anything when the ticket is missing.
        """

        async with self._pool.acquire() as connection:
            async with connection.transaction():
                touched = await connection.fetchrow(
                    self._TOUCH_FOR_MESSAGE_SQL,
                    ticket_id,
                    None if status is None else status.value,
                    draft.created_at,
                )
                if touched is None:
                    return None
                row = await connection.fetchrow(
                    self._INSERT_MESSAGE_SQL,
                    ticket_id,
                    draft.text,
                    draft.author_role.value,
                    draft.author_id,
                    draft.created_at,
                )
        if row is None:
            raise RuntimeError("Failed to insert ticket message")
        return self._row_to_message(row)

    async def list_messages(self, ticket_id: str) -> Sequence[TicketMessage]:
        async with self._pool.acquire() as connection:
            rows = await connection.fetch(self._SELECT_MESSAGES_SQL, ticket_id)
        return [self._row_to_message(row) for row in rows]

    @staticmethod
    def _row_to_ticket(row: Mapping[str, Any]) -> Ticket:
        last_message_at = row["last_message_at"]
        requester_name = row["requester_name"]
        return Ticket(
            id=str(row["id"]),
            subject=str(row["subject"]),
            location=str(row["location"]),
            email=str(row["email"]),
            requester_name=str(requester_name) if requester_name is not None else None,
            details=str(row["details"]),
            status=TicketStatus(str(row["status"])),
            created_at=_ensure_datetime(row["created_at"]),
            updated_at=_ensure_datetime(row["updated_at"]),
            last_message_at=_ensure_datetime(last_message_at) if last_message_at is not None else None,
        )

    @staticmethod
    def _row_to_message(row: Mapping[str, Any]) -> TicketMessage:
        author_id = row["author_id"]
        return TicketMessage(
            id=int(row["id"]),
            ticket_id=str(row["ticket_id"]),
            text=str(row["text"]),
            author_role=AuthorRole(str(row["author_role"])),
            author_id=str(author_id) if author_id is not None else None,
            created_at=_ensure_datetime(row["created_at"]),
        )


def _ensure_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed
