from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from helpdesk.dependencies.auth import OptionalAgent
from helpdesk.dependencies.tickets import TicketServiceDep
from helpdesk.tickets.errors import TicketNotFoundError, TicketValidationError, UnauthorizedError
from helpdesk.tickets.models import TicketDraft

from .schemas import (
    MessageCreateRequest,
    MessageCreatedResponse,
    MessageListResponse,
    TicketCreateRequest,
    TicketCreatedResponse,
    TicketEnvelope,
    to_message_response,
    to_ticket_response,
)

router = APIRouter(prefix="/tickets", tags=["tickets"])


@router.post("", response_model=TicketCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket(payload: TicketCreateRequest, service: TicketServiceDep) -> TicketCreatedResponse:
    draft = TicketDraft(
        subject=payload.subject,
        location=payload.location,
        email=payload.email,
        details=payload.details,
        name=payload.name,
    )
    try:
        ticket = await service.create_ticket(draft)
    except TicketValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return TicketCreatedResponse(ticket_id=ticket.id)


@router.get("/{ticket_id}", response_model=TicketEnvelope)
async def get_ticket(ticket_id: str, service: TicketServiceDep) -> TicketEnvelope:
    try:
        ticket = await service.get_ticket(ticket_id)
    except TicketNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return TicketEnvelope(ticket=to_ticket_response(ticket))


@router.get("/{ticket_id}/messages", response_model=MessageListResponse)
async def list_messages(ticket_id: str, service: TicketServiceDep) -> MessageListResponse:
    messages = await service.list_messages(ticket_id)
    return MessageListResponse(messages=[to_message_response(message) for message in messages])


@router.post(
    "/{ticket_id}/messages",
    response_model=MessageCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def append_message(
    ticket_id: str,
    payload: MessageCreateRequest,
    service: TicketServiceDep,
    agent: OptionalAgent,
) -> MessageCreatedResponse:
    try:
        message = await service.append_message(
            ticket_id,
            payload.text,
            payload.author_role,
            agent=agent,
            author_id=payload.author_id,
        )
    except TicketValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except UnauthorizedError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except TicketNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return MessageCreatedResponse(message=to_message_response(message))
