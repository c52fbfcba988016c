from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from helpdesk.tickets.models import MessageDraft, Ticket
from helpdesk.tickets.repository import TicketRepository
from helpdesk.tickets.state import AuthorRole, TicketStatus


class DummyAcquire:
    def __init__(self, connection):
        self._connection = connection

    async def __aenter__(self):
        return self._connection

    async def __aexit__(self, exc_type, exc, tb):
        return False


class DummyTransaction:
    def __init__(self):
        self.entered = False
        self.exited_with = None

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.exited_with = exc_type
        return False


class DummyPool:
    def __init__(self, connection):
        self._connection = connection

    def acquire(self):
        return DummyAcquire(self._connection)


def _connection(transaction: DummyTransaction | None = None) -> AsyncMock:
    connection = AsyncMock()
    connection.transaction = MagicMock(return_value=transaction or DummyTransaction())
    return connection


def _ticket_row(**overrides):
    now = datetime.now(timezone.utc)
    row = {
        "id": "HDK-AB12C",
        "subject": "Printer jam",
        "location": "Remote",
        "email": "a@x.com",
        "requester_name": None,
        "details": "The printer on floor two keeps jamming",
        "status": "new-alert",
        "created_at": now,
        "updated_at": now,
        "last_message_at": None,
    }
    row.update(overrides)
    return row


@pytest.mark.asyncio
async def test_ensure_schema_creates_tables():
    connection = _connection()
    repository = TicketRepository(DummyPool(connection))

    await repository.ensure_schema()

    executed = [call.args[0] for call in connection.execute.await_args_list]
    assert any("CREATE TABLE IF NOT EXISTS tickets" in stmt for stmt in executed)
    assert any("CREATE TABLE IF NOT EXISTS ticket_messages" in stmt for stmt in executed)
    assert any("CREATE INDEX IF NOT EXISTS" in stmt for stmt in executed)


@pytest.mark.asyncio
async def test_create_ticket_reports_id_conflict():
    connection = _connection()
    connection.fetchrow = AsyncMock(side_effect=[{"id": "HDK-AB12C"}, None])
    repository = TicketRepository(DummyPool(connection))
    now = datetime.now(timezone.utc)
    ticket = Ticket(
        id="HDK-AB12C",
        subject="Printer jam",
        location="Remote",
        email="a@x.com",
        requester_name="Ana",
        details="The printer on floor two keeps jamming",
        status=TicketStatus.OPEN,
        created_at=now,
        updated_at=now,
    )

    assert await repository.create_ticket(ticket) is True
    assert await repository.create_ticket(ticket) is False

    args = connection.fetchrow.await_args_list[0].args
    assert "ON CONFLICT (id) DO NOTHING" in args[0]
    assert args[1:] == (
        "HDK-AB12C",
        "Printer jam",
        "Remote",
        "a@x.com",
        "Ana",
        "The printer on floor two keeps jamming",
        "open",
        now,
        now,
        None,
    )


@pytest.mark.asyncio
async def test_get_ticket_maps_row_and_normalizes_timestamps():
    naive = datetime(2024, 5, 1, 9, 30)
    connection = _connection()
    connection.fetchrow = AsyncMock(return_value=_ticket_row(created_at=naive, last_message_at=naive))
    repository = TicketRepository(DummyPool(connection))

    ticket = await repository.get_ticket("HDK-AB12C")

    assert ticket is not None
    assert ticket.status == TicketStatus.NEW_ALERT
    assert ticket.created_at.tzinfo is timezone.utc
    assert ticket.last_message_at == naive.replace(tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_get_ticket_returns_none_when_missing():
    connection = _connection()
    connection.fetchrow = AsyncMock(return_value=None)
    repository = TicketRepository(DummyPool(connection))

    assert await repository.get_ticket("HDK-00000") is None


@pytest.mark.asyncio
async def test_list_tickets_passes_limit():
    connection = _connection()
    connection.fetch = AsyncMock(return_value=[_ticket_row(), _ticket_row(id="HDK-ZZZZZ", status="closed")])
    repository = TicketRepository(DummyPool(connection))

    tickets = await repository.list_tickets(limit=200)

    assert [ticket.id for ticket in tickets] == ["HDK-AB12C", "HDK-ZZZZZ"]
    sql, limit = connection.fetch.await_args.args
    assert "ORDER BY last_message_at DESC NULLS LAST" in sql
    assert limit == 200


@pytest.mark.asyncio
async def test_append_message_updates_ticket_inside_transaction():
    now = datetime.now(timezone.utc)
    transaction = DummyTransaction()
    connection = _connection(transaction)
    connection.fetchrow = AsyncMock(
        side_effect=[
            {"id": "HDK-AB12C"},
            {
                "id": 42,
                "ticket_id": "HDK-AB12C",
                "text": "any update?",
                "author_role": "requester",
                "author_id": None,
                "created_at": now,
            },
        ]
    )
    repository = TicketRepository(DummyPool(connection))
    draft = MessageDraft(text="any update?", author_role=AuthorRole.REQUESTER, author_id=None, created_at=now)

    message = await repository.append_message("HDK-AB12C", draft, status=TicketStatus.NEW_ALERT)

    assert message is not None
    assert message.id == 42
    assert message.author_role == AuthorRole.REQUESTER
    assert transaction.entered
    assert transaction.exited_with is None
    touch_args = connection.fetchrow.await_args_list[0].args
    assert touch_args[1:] == ("HDK-AB12C", "new-alert", now)
    assert "GREATEST(last_message_at" in touch_args[0]


@pytest.mark.asyncio
async def test_append_message_skips_insert_for_missing_ticket():
    now = datetime.now(timezone.utc)
    connection = _connection()
    connection.fetchrow = AsyncMock(return_value=None)
    repository = TicketRepository(DummyPool(connection))
    draft = MessageDraft(text="hello", author_role=AuthorRole.AGENT, author_id="agent-1", created_at=now)

    message = await repository.append_message("HDK-00000", draft)

    assert message is None
    assert connection.fetchrow.await_count == 1
    assert connection.fetchrow.await_args.args[2] is None


@pytest.mark.asyncio
async def test_list_messages_maps_rows():
    now = datetime.now(timezone.utc)
    connection = _connection()
    connection.fetch = AsyncMock(
        return_value=[
            {
                "id": 1,
                "ticket_id": "HDK-AB12C",
                "text": "hello",
                "author_role": "agent",
                "author_id": "agent-1",
                "created_at": now,
            }
        ]
    )
    repository = TicketRepository(DummyPool(connection))

    messages = await repository.list_messages("HDK-AB12C")

    assert len(messages) == 1
    assert messages[0].author_id == "agent-1"
    assert messages[0].author_role == AuthorRole.AGENT
    assert "ORDER BY created_at ASC, id ASC" in connection.fetch.await_args.args[0]
