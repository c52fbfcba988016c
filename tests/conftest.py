from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from helpdesk.notifications.notifier import TicketNotifier
from helpdesk.security.identity import AgentIdentity
from helpdesk.tickets.errors import NotificationDeliveryError
from helpdesk.tickets.memory import InMemoryTicketRepository
from helpdesk.tickets.models import TicketDraft
from helpdesk.tickets.service import TicketService


class FakeClock:
    """Deterministic clock advancing one second per reading."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)) -> None:
        self.current = start or datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        return value


class RecordingSender:
    def __init__(self, fail_for: tuple[str, ...] = ()) -> None:
        self.sent: list[dict[str, str]] = []
        self.fail_for = set(fail_for)

    async def send(self, *, to: str, sender: str, subject: str, body: str) -> None:
        if to in self.fail_for:
            raise NotificationDeliveryError(f"relay refused {to}")
        self.sent.append({"to": to, "sender": sender, "subject": subject, "body": body})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryTicketRepository:
    return InMemoryTicketRepository()


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def notifier(sender: RecordingSender) -> TicketNotifier:
    return TicketNotifier(
        sender=sender,
        from_address="helpdesk@example.com",
        support_address="support@example.com",
        base_url="https://help.example.com",
    )


@pytest.fixture
def service(store, notifier, clock) -> TicketService:
    return TicketService(store, notifier=notifier, clock=clock)


@pytest.fixture
def agent() -> AgentIdentity:
    return AgentIdentity(agent_id="agent-1")


@pytest.fixture
def make_draft():
    def factory(**overrides) -> TicketDraft:
        values = {
            "subject": "Five9 issue",
            "location": "In office",
            "email": "a@x.com",
            "details": "My phone will not dial out today",
            "name": None,
        }
        values.update(overrides)
        return TicketDraft(**values)

    return factory
