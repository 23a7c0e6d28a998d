"""
api/main.py -- FastAPI application entry point for Roster.

Exposes the user directory and session lifecycle to the admin console over a
single action endpoint (api/routes/v1/actions.py) plus a health check.

Run with:      uvicorn api.main:app --reload
               python main.py serve

Lifespan handles startup (store, services, sweep task) and shutdown (cancel
sweep task, dispose engine) symmetrically.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.models import ActionResponse, HealthResponse
from api.routes.v1.actions import router as actions_router
from auth.directory import UserDirectory
from auth.invitations import InvitationService
from auth.service import AuthService
from auth.sessions import SessionStore
from auth.store import Database
from core.config import get_settings
from mail.channel import build_mail_channel

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("roster.api")

# ---------------------------------------------------------------------------
# Background session sweep
# ---------------------------------------------------------------------------


async def _sweep_loop(app: FastAPI, interval_seconds: int) -> None:
    """Delete expired sessions every interval_seconds.

    Lazy expiry in SessionStore.is_valid() already rejects stale tokens; this
    loop only keeps the sessions table from growing with tokens nobody
    presents again. CancelledError from task.cancel() during shutdown
    propagates out of asyncio.sleep and unwinds the coroutine.
    """
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            removed = await asyncio.to_thread(app.state.sessions.sweep_expired)
        except Exception:
            logger.exception("Session sweep failed")
            continue
        if removed:
            logger.info("Session sweep removed %d expired session(s)", removed)


def build_services(app: FastAPI, db: Database) -> None:
    """Wire the store handle into every service and park them on app.state."""
    settings = get_settings()
    directory = UserDirectory(db)
    sessions = SessionStore(
        db,
        timeout=settings.session_timeout,
        sweep_on_create=settings.session_sweep_on_create,
    )
    app.state.db = db
    app.state.directory = directory
    app.state.sessions = sessions
    app.state.auth_service = AuthService(
        directory,
        sessions,
        allow_legacy_passwords=settings.legacy_password_import,
    )
    app.state.invitation_service = InvitationService(
        directory,
        build_mail_channel(settings),
        setup_url=settings.setup_url,
        organization=settings.organization_name,
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown.
    """
    settings = get_settings()
    logger.info("Roster API starting up")
    db = Database()
    build_services(app, db)
    if not app.state.directory.has_users():
        logger.warning("No users found. Run `python main.py init` to create the admin account.")

    app.state.sweep_task = None
    if settings.session_sweep_interval_seconds > 0:
        app.state.sweep_task = asyncio.create_task(_sweep_loop(app, settings.session_sweep_interval_seconds))

    yield

    if app.state.sweep_task is not None:
        app.state.sweep_task.cancel()
    app.state.db.close()
    logger.info("Roster API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Roster API",
    description="User directory and session authentication for the admin console.",
    version=VERSION,
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(actions_router, prefix="/api/v1", tags=["Actions"])
# Same endpoint at the root for console builds that post to "<base>/exec".
app.include_router(actions_router, include_in_schema=False)


# ---------------------------------------------------------------------------
# Exception handlers
#
# Action failures never get here (run_action() catches them). This covers
# failures outside the action handlers so the console still receives the
# envelope it knows how to parse.
# ---------------------------------------------------------------------------


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ActionResponse.failure("Server error").to_content(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness, version and database reachability."""
    try:
        request.app.state.db.ping()
        database = "ok"
    except Exception:
        logger.exception("Health check: database unreachable")
        database = "error"
    return HealthResponse(
        status="healthy",
        version=VERSION,
        components={"app": "ok", "database": database},
    )
