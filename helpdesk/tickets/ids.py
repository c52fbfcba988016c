"""Ticket identifier generation."""

from __future__ import annotations

import re
import secrets
import string

TICKET_ID_PREFIX = "HDK"
TICKET_ID_LENGTH = 5

_ALPHABET = string.digits + string.ascii_uppercase
_TICKET_ID_RE = re.compile(rf"^{TICKET_ID_PREFIX}-[0-9A-Z]{{{TICKET_ID_LENGTH}}}$")


def generate_ticket_id() -> str:
    """Return a fresh human-shareable id such as ``HDK-4F7QZ``."""

    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(TICKET_ID_LENGTH))
    return f"{TICKET_ID_PREFIX}-{suffix}"


def is_valid_ticket_id(ticket_id: str) -> bool:
    return bool(_TICKET_ID_RE.match(ticket_id or ""))
