"""HTTP surface of the helpdesk service."""
