"""Security utilities for the helpdesk application."""

from .identity import AgentIdentity, AgentIdentityProvider, StaticTokenIdentityProvider

__all__ = [
    "AgentIdentity",
    "AgentIdentityProvider",
    "StaticTokenIdentityProvider",
]
