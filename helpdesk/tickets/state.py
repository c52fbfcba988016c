from __future__ import annotations

from enum import Enum

from .errors import InvalidStatusError


class TicketStatus(str, Enum):
    """Supported states for a ticket's lifecycle."""

    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"
    NEW_ALERT = "new-alert"


class AuthorRole(str, Enum):
    """Who wrote a ticket message."""

    AGENT = "agent"
    REQUESTER = "requester"


# Display order of the agent ticket list: unread requester activity first.
STATUS_PRIORITY: dict[TicketStatus, int] = {
    TicketStatus.NEW_ALERT: 0,
    TicketStatus.OPEN: 1,
    TicketStatus.IN_PROGRESS: 2,
    TicketStatus.RESOLVED: 3,
    TicketStatus.CLOSED: 4,
}


class TicketStateMachine:
    """Resolve ticket status changes.

    The workflow is advisory: agents may move a ticket between any of the
    supported states, ``closed`` included. The only rule enforced here is that
    a requester message always puts the ticket back into ``new-alert``.
    """

    @classmethod
    def initial_state(cls) -> TicketStatus:
        return TicketStatus.OPEN

    @classmethod
    def parse(cls, value: str | TicketStatus) -> TicketStatus:
        if isinstance(value, TicketStatus):
            return value
        try:
            return TicketStatus(str(value))
        except ValueError as exc:
            raise InvalidStatusError(f"Invalid status: {value!r}") from exc

    @classmethod
    def agent_transition(cls, current: TicketStatus, requested: str | TicketStatus) -> TicketStatus:
        """Target status of an agent change from ``current``; only unknown values are refused."""

        return cls.parse(requested)

    @classmethod
    def status_forced_by_message(cls, author_role: AuthorRole) -> TicketStatus | None:
        """Status a new message imposes on its ticket, ``None`` to leave it alone."""

        if author_role is AuthorRole.REQUESTER:
            return TicketStatus.NEW_ALERT
        return None
