"""Configuration and logging for the helpdesk service."""
