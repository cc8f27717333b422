# ==============================================================================
# FastAPI Application
# ==============================================================================
"""
Application factory wiring the core services into FastAPI.

The EventStore, ConnectionRegistry, BroadcastRouter and MessageDispatcher are
built once per application and kept on ``app.state.services``; nothing is a
module-level singleton. The inactive connection sweep runs as a PeriodicTask
for the lifetime of the app and is cancelled on shutdown.

Run with:
    uvicorn --factory livestats.api.server:create_app
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from livestats.api.routes import router as api_router
from livestats.api.sockets import router as socket_router
from livestats.core.event_store import EventStore
from livestats.core.milestones import MilestoneDetector
from livestats.core.time_buckets import Clock, utc_now
from livestats.exceptions import EventValidationError
from livestats.realtime import (
    BroadcastRouter,
    ConnectionRegistry,
    MessageDispatcher,
    PeriodicTask,
)
from livestats.utils.config import Settings, get_settings
from livestats.utils.versions import get_livestats_version

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything a request handler may need, created once per app."""

    settings: Settings
    store: EventStore
    registry: ConnectionRegistry
    router: BroadcastRouter
    dispatcher: MessageDispatcher


def build_services(settings: Settings, clock: Clock = utc_now) -> Services:
    store = EventStore.from_settings(settings.store, clock=clock)
    registry = ConnectionRegistry(clock=clock)
    router = BroadcastRouter(
        store,
        registry,
        detector=MilestoneDetector.from_settings(settings.milestones),
        clock=clock,
        connection_timeout=timedelta(seconds=settings.realtime.connection_timeout_seconds),
    )
    dispatcher = MessageDispatcher(store, registry, router, clock=clock)
    return Services(
        settings=settings,
        store=store,
        registry=registry,
        router=router,
        dispatcher=dispatcher,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    services: Services = app.state.services
    sweeper = PeriodicTask(
        "connection-sweep",
        services.settings.realtime.sweep_interval_seconds,
        services.router.sweep_inactive,
    )
    sweeper.start()
    logger.info("livestats v%s ready", get_livestats_version())
    try:
        yield
    finally:
        await sweeper.stop()
        logger.info("livestats shut down")


def create_app(settings: Settings | None = None, clock: Clock = utc_now) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use; defaults to the cached environment settings
        clock: Clock shared by every service (tests inject a fixed one)
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="livestats",
        version=get_livestats_version(),
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.services = build_services(settings, clock=clock)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    app.include_router(socket_router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": get_livestats_version()}

    @app.exception_handler(EventValidationError)
    async def handle_validation_error(request: Request, exc: EventValidationError):
        logger.info("Rejected event: %s", exc)
        return JSONResponse(
            status_code=400, content={"error": "Invalid event data", "details": exc.errors}
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404, content={"error": f"Can't find {request.url.path}"}
            )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": "Something went wrong on our end!", "message": str(exc)},
        )

    return app
