"""Agent identity verification."""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import Mapping, Protocol

from helpdesk.core.config import Settings
from helpdesk.tickets.errors import UnauthorizedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AgentIdentity:
    """An authenticated support agent."""

    agent_id: str


class AgentIdentityProvider(Protocol):
    def verify(self, token: str) -> AgentIdentity:
        ...


class StaticTokenIdentityProvider:
    """Map configured bearer tokens to agent identifiers."""

    def __init__(self, tokens: Mapping[str, str]) -> None:
        self._tokens = {token: agent_id for token, agent_id in tokens.items() if token}

    @classmethod
    def from_settings(cls, settings: Settings) -> "StaticTokenIdentityProvider":
        return cls(settings.agent_tokens)

    def verify(self, token: str) -> AgentIdentity:
        for known, agent_id in self._tokens.items():
            if hmac.compare_digest(known.encode("utf-8"), token.encode("utf-8")):
                return AgentIdentity(agent_id=agent_id)
        logger.warning("Agent authentication failed: unknown bearer token")
        raise UnauthorizedError("Invalid authentication credentials")
