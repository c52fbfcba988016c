"""Read-model helpers for the agent ticket list.

These mirror what the agent console does with the ticket listing: a status
filter with an ``all`` pseudo-filter, a case-insensitive search box and a
display order driven by status priority.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from .models import Ticket
from .state import STATUS_PRIORITY, TicketStatus

ALL_STATUSES = "all"


def matches_search(ticket: Ticket, term: str) -> bool:
    needle = term.strip().lower()
    if not needle:
        return True
    haystacks = (ticket.subject or "", ticket.email or "", ticket.details or "")
    return any(needle in value.lower() for value in haystacks)


def filter_tickets(
    tickets: Iterable[Ticket],
    *,
    status: TicketStatus | str = ALL_STATUSES,
    search: str = "",
) -> list[Ticket]:
    selected = list(tickets)
    if status != ALL_STATUSES:
        wanted = TicketStatus(status)
        selected = [ticket for ticket in selected if ticket.status is wanted]
    return [ticket for ticket in selected if matches_search(ticket, search)]


def sort_by_status_priority(tickets: Iterable[Ticket]) -> list[Ticket]:
    """Stable sort putting ``new-alert`` first and ``closed`` last."""

    return sorted(tickets, key=lambda ticket: STATUS_PRIORITY[ticket.status])


def count_by_status(tickets: Sequence[Ticket]) -> dict[str, int]:
    counts = {ALL_STATUSES: len(tickets)}
    counts.update({status.value: 0 for status in TicketStatus})
    for ticket in tickets:
        counts[ticket.status.value] += 1
    return counts
