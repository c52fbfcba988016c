from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, HTTPException, Query

from helpdesk.dependencies.auth import OptionalAgent
from helpdesk.dependencies.tickets import TicketServiceDep
from helpdesk.tickets.errors import InvalidStatusError, TicketNotFoundError, UnauthorizedError
from helpdesk.tickets.views import ALL_STATUSES, count_by_status, filter_tickets, sort_by_status_priority

from .schemas import (
    StatusChangedResponse,
    TicketListResponse,
    TicketStatusChangeRequest,
    to_ticket_response,
)

router = APIRouter(prefix="/admin/tickets", tags=["admin"])


@router.get("", response_model=TicketListResponse)
async def list_tickets(
    service: TicketServiceDep,
    agent: OptionalAgent,
    status_filter: str = Query(default=ALL_STATUSES, alias="status"),
    search: str = Query(default="", alias="q", max_length=200),
    sort: Literal["activity", "status"] = Query(default="activity"),
) -> TicketListResponse:
    try:
        tickets = await service.list_tickets(agent)
    except UnauthorizedError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    try:
        visible = filter_tickets(tickets, status=status_filter, search=search)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid status filter: {status_filter}") from exc
    if sort == "status":
        visible = sort_by_status_priority(visible)
    return TicketListResponse(
        tickets=[to_ticket_response(ticket) for ticket in visible],
        counts=count_by_status(tickets),
    )


@router.patch("/{ticket_id}", response_model=StatusChangedResponse)
async def set_ticket_status(
    ticket_id: str,
    payload: TicketStatusChangeRequest,
    service: TicketServiceDep,
    agent: OptionalAgent,
) -> StatusChangedResponse:
    try:
        ticket = await service.set_status(ticket_id, payload.status, agent)
    except UnauthorizedError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except InvalidStatusError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except TicketNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return StatusChangedResponse(ticket=to_ticket_response(ticket))
