from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from helpdesk.tickets.models import Ticket, TicketMessage
from helpdesk.tickets.state import AuthorRole, TicketStatus


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class _RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class TicketCreateRequest(_RequestModel):
    subject: str = ""
    location: str = ""
    email: str = ""
    details: str = ""
    name: str | None = None


class TicketCreatedResponse(_CamelModel):
    ticket_id: str


class MessageCreateRequest(_RequestModel):
    text: str
    author_role: AuthorRole = AuthorRole.REQUESTER
    author_id: str | None = Field(default=None, max_length=255)


class TicketStatusChangeRequest(_RequestModel):
    status: str


class TicketResponse(_CamelModel):
    id: str
    subject: str
    location: str
    email: str
    requester_name: str | None
    details: str
    status: TicketStatus
    created_at: datetime
    updated_at: datetime
    last_message_at: datetime | None


class MessageResponse(_CamelModel):
    id: int
    ticket_id: str
    text: str
    author_role: AuthorRole
    author_id: str | None
    created_at: datetime


class TicketEnvelope(_CamelModel):
    ticket: TicketResponse


class TicketListResponse(_CamelModel):
    tickets: list[TicketResponse]
    counts: dict[str, int]


class MessageListResponse(_CamelModel):
    messages: list[MessageResponse]


class MessageCreatedResponse(_CamelModel):
    ok: bool = True
    message: MessageResponse


class StatusChangedResponse(_CamelModel):
    ok: bool = True
    ticket: TicketResponse


def to_ticket_response(ticket: Ticket) -> TicketResponse:
    return TicketResponse.model_validate(ticket)


def to_message_response(message: TicketMessage) -> MessageResponse:
    return MessageResponse.model_validate(message)
