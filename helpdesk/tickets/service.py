from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Sequence

from opentelemetry import trace

from .errors import (
    TicketIdCollisionError,
    TicketNotFoundError,
    TicketValidationError,
    UnauthorizedError,
)
from .ids import generate_ticket_id
from .models import MessageDraft, Ticket, TicketDraft, TicketMessage
from .repository import TicketStore
from .state import AuthorRole, TicketStateMachine, TicketStatus

if TYPE_CHECKING:
    from helpdesk.notifications.notifier import TicketNotifier
    from helpdesk.security.identity import AgentIdentity

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

SUBJECT_MAX_LENGTH = 200
DETAILS_MIN_LENGTH = 20
DEFAULT_LIST_LIMIT = 200
ID_GENERATION_ATTEMPTS = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _clean(value: str | None) -> str:
    return str(value or "").strip()


class TicketService:
    """Ticket lifecycle: creation, status changes, messages and reads.

    Authorization is expressed through the ``agent`` argument: ``None`` means
    the caller is not an authenticated agent.
    """

    def __init__(
        self,
        store: TicketStore,
        *,
        notifier: TicketNotifier | None = None,
        list_limit: int = DEFAULT_LIST_LIMIT,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = generate_ticket_id,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._list_limit = list_limit
        self._clock = clock
        self._id_factory = id_factory

    async def create_ticket(self, draft: TicketDraft) -> Ticket:
        subject = str(draft.subject or "")[:SUBJECT_MAX_LENGTH].strip()
        location = _clean(draft.location)
        email = _clean(draft.email)
        details = _clean(draft.details)
        requester_name = _clean(draft.name) or None

        if not subject:
            raise TicketValidationError("Missing subject")
        if not location:
            raise TicketValidationError("Location is required (in office or working at home).")
        if len(details) < DETAILS_MIN_LENGTH:
            raise TicketValidationError(f"Details must be at least {DETAILS_MIN_LENGTH} characters long.")
        if not email:
            raise TicketValidationError("Email is required so we can contact the requester.")

        with tracer.start_as_current_span("tickets.create"):
            now = self._clock()
            for _ in range(ID_GENERATION_ATTEMPTS):
                ticket = Ticket(
                    id=self._id_factory(),
                    subject=subject,
                    location=location,
                    email=email,
                    requester_name=requester_name,
                    details=details,
                    status=TicketStateMachine.initial_state(),
                    created_at=now,
                    updated_at=now,
                    last_message_at=None,
                )
                if await self._store.create_ticket(ticket):
                    break
                logger.warning("Ticket id %s already taken, generating another", ticket.id)
            else:
                raise TicketIdCollisionError("Could not allocate a unique ticket id")

            logger.info("Created ticket %s", ticket.id)
            if self._notifier is not None:
                await self._notifier.ticket_created(ticket)
        return ticket

    async def get_ticket(self, ticket_id: str) -> Ticket:
        ticket = await self._store.get_ticket(ticket_id)
        if ticket is None:
            raise TicketNotFoundError(f"Ticket {ticket_id} not found")
        return ticket

    async def list_tickets(self, agent: AgentIdentity | None) -> Sequence[Ticket]:
        """Tickets for the agent console, most recent message activity first."""

        self._require_agent(agent, action="list tickets")
        return await self._store.list_tickets(limit=self._list_limit)

    async def set_status(
        self,
        ticket_id: str,
        new_status: str | TicketStatus,
        agent: AgentIdentity | None,
    ) -> Ticket:
        self._require_agent(agent, action="change ticket status")
        target = TicketStateMachine.parse(new_status)

        with tracer.start_as_current_span("tickets.set_status"):
            current = await self.get_ticket(ticket_id)
            target = TicketStateMachine.agent_transition(current.status, target)
            updated = await self._store.update_status(ticket_id, target, self._clock())
            if updated is None:
                raise TicketNotFoundError(f"Ticket {ticket_id} not found")

        logger.info(
            "Ticket %s status %s -> %s by %s",
            ticket_id,
            current.status.value,
            target.value,
            agent.agent_id,
        )
        return updated

    async def list_messages(self, ticket_id: str) -> Sequence[TicketMessage]:
        return await self._store.list_messages(ticket_id)

    async def append_message(
        self,
        ticket_id: str,
        text: str,
        author_role: str | AuthorRole,
        *,
        agent: AgentIdentity | None = None,
        author_id: str | None = None,
    ) -> TicketMessage:
        cleaned = _clean(text)
        if not cleaned:
            raise TicketValidationError("Missing text")
        try:
            role = AuthorRole(author_role)
        except ValueError as exc:
            raise TicketValidationError(f"Unknown author role: {author_role!r}") from exc

        if role is AuthorRole.AGENT:
            self._require_agent(agent, action="post agent messages")
            resolved_author = author_id or agent.agent_id
        else:
            resolved_author = None

        with tracer.start_as_current_span("tickets.append_message"):
            await self.get_ticket(ticket_id)
            forced_status = TicketStateMachine.status_forced_by_message(role)
            draft = MessageDraft(
                text=cleaned,
                author_role=role,
                author_id=resolved_author,
                created_at=self._clock(),
            )
            message = await self._store.append_message(ticket_id, draft, status=forced_status)
            if message is None:
                raise TicketNotFoundError(f"Ticket {ticket_id} not found")

        logger.info("Appended %s message %s to ticket %s", role.value, message.id, ticket_id)
        return message

    @staticmethod
    def _require_agent(agent: AgentIdentity | None, *, action: str) -> None:
        if agent is None:
            logger.warning("Rejected unauthenticated attempt to %s", action)
            raise UnauthorizedError("Unauthorized")
