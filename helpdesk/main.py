import logging
from contextlib import asynccontextmanager

import asyncpg
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from helpdesk.api.routes import admin, ping, tickets
from helpdesk.core.config import Settings, get_settings
from helpdesk.core.logging import configure_logging, init_tracer, shutdown_tracer
from helpdesk.notifications import SmtpNotificationSender, TicketNotifier
from helpdesk.security.identity import StaticTokenIdentityProvider
from helpdesk.tickets.memory import InMemoryTicketRepository
from helpdesk.tickets.repository import TicketRepository
from helpdesk.tickets.service import TicketService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - executed by framework
    settings: Settings = app.state.settings
    app.state.logger = configure_logging(settings)
    tracer_provider = init_tracer(settings)

    pool: asyncpg.Pool | None = None
    app.state.ticket_service = None
    try:
        if settings.store_backend == "memory":
            store = InMemoryTicketRepository()
            logger.warning("Using the in-memory ticket store; data is lost on restart")
        else:
            pool = await asyncpg.create_pool(dsn=settings.postgres_dsn, min_size=1, max_size=10)
            store = TicketRepository(pool)
            await store.ensure_schema()
        notifier = TicketNotifier.from_settings(settings, SmtpNotificationSender.from_settings(settings))
        app.state.ticket_service = TicketService(
            store,
            notifier=notifier,
            list_limit=settings.ticket_list_limit,
        )
    except Exception:  # service initialisation is best effort; routes answer 503
        logger.exception("Ticket service initialisation failed")
        if pool is not None:
            await pool.close()
            pool = None
    try:
        yield
    finally:
        if pool is not None:
            await pool.close()
        shutdown_tracer(tracer_provider)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    reason = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    location = ".".join(str(part) for part in errors[0].get("loc", ())) if errors else ""
    detail = f"{location}: {reason}" if location else reason
    return JSONResponse(status_code=400, content={"detail": detail})


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.identity_provider = StaticTokenIdentityProvider.from_settings(settings)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)
    app.include_router(ping.router)
    app.include_router(tickets.router)
    app.include_router(admin.router)
    return app


app = create_app()
