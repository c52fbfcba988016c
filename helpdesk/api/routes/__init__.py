"""Route modules exposed by the API package."""

from . import admin, ping, tickets

__all__ = ["admin", "ping", "tickets"]
