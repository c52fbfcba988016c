"""Logging and tracing setup for the helpdesk service.

Every module logs through ``logging.getLogger(__name__)``, so records land in
one of the ``helpdesk.<area>`` loggers below. Each area can be tuned on its own
through ``Settings.log_levels``; ticket writes are also traced when OTLP export
is enabled.
"""

from __future__ import annotations

import logging
from logging.config import dictConfig

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from helpdesk.core.config import Settings

ROOT_LOGGER = "helpdesk"

# ticket lifecycle, email delivery, agent token checks, app wiring
LOG_AREAS = ("tickets", "notifications", "security", "main")

_provider: TracerProvider | None = None


def parse_headers(header_string: str | None) -> dict[str, str]:
    """Parse ``key=value,key2=value2`` OTLP header strings."""

    if not header_string:
        return {}
    headers: dict[str, str] = {}
    for item in header_string.split(","):
        key, sep, value = item.partition("=")
        if sep and key.strip():
            headers[key.strip()] = value.strip()
    return headers


def _level(name: str | None, fallback: int) -> int:
    if not name:
        return fallback
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else fallback


def area_levels(settings: Settings) -> dict[str, int]:
    """Resolve the effective level of each ``helpdesk.<area>`` logger."""

    base = _level(settings.log_level, logging.INFO)
    unknown = set(settings.log_levels) - set(LOG_AREAS)
    if unknown:
        raise ValueError(f"Unknown log areas: {', '.join(sorted(unknown))}")
    return {area: _level(settings.log_levels.get(area), base) for area in LOG_AREAS}


def configure_logging(settings: Settings) -> logging.Logger:
    """Install the console handler on the root logger and return the ``helpdesk`` logger.

    Third-party libraries stay at WARNING; the helpdesk areas use their own levels.
    """

    base = _level(settings.log_level, logging.INFO)
    loggers = {
        f"{ROOT_LOGGER}.{area}": {"level": level, "propagate": True}
        for area, level in area_levels(settings).items()
    }
    loggers[ROOT_LOGGER] = {"level": base, "propagate": True}

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"plain": {"format": settings.log_format}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "plain",
                }
            },
            "loggers": loggers,
            "root": {"handlers": ["console"], "level": logging.WARNING},
        }
    )

    logger = logging.getLogger(ROOT_LOGGER)
    logger.debug("Logging configured for %s (%s)", settings.app_name, settings.environment)
    return logger


def init_tracer(settings: Settings) -> TracerProvider | None:
    """Export ticket spans over OTLP/HTTP when ``otel_enabled`` is set."""

    global _provider

    if _provider is not None or not settings.otel_enabled:
        return None

    resource = Resource(
        attributes={
            "service.name": settings.otel_service_name,
            "deployment.environment": settings.environment,
        }
    )
    provider = TracerProvider(resource=resource)
    exporter = OTLPSpanExporter(
        endpoint=settings.otel_exporter_otlp_endpoint,
        headers=parse_headers(settings.otel_exporter_otlp_headers) or None,
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    _provider = provider
    logging.getLogger(ROOT_LOGGER).info("Tracing enabled for %s", settings.otel_service_name)
    return provider


def shutdown_tracer(provider: TracerProvider | None) -> None:
    global _provider

    if provider is None:
        return
    provider.shutdown()
    if provider is _provider:
        _provider = None
