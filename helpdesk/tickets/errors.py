"""Exception hierarchy for ticket lifecycle operations."""

from __future__ import annotations


class TicketServiceError(RuntimeError):
    """Base error for ticket service issues."""


class TicketValidationError(TicketServiceError):
    """Raised when caller supplied input is missing or malformed."""


class UnauthorizedError(TicketServiceError):
    """Raised when an agent-only action is attempted without an agent."""


class TicketNotFoundError(TicketServiceError):
    """Raised when an operation targets a non-existent ticket."""


class InvalidStatusError(TicketServiceError):
    """Raised when a status value is outside the supported set."""


class TicketIdCollisionError(TicketServiceError):
    """Raised by a store when a generated ticket id is already taken."""


class NotificationDeliveryError(RuntimeError):
    """Raised by notification senders when a message could not be delivered."""
