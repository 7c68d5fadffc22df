"""FastAPI application factory exposing a ConsoleSession over HTTP."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pioconsole import __version__
from pioconsole.session import ConsoleSession
from pioconsole.utils.logging import get_logger, is_configured, setup_logging

logger = get_logger(__name__)


def create_app(session: ConsoleSession) -> FastAPI:
    """Create the API for *session*.

    The session is attached to its backend's push channels for the lifetime
    of the app and closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if not is_configured():
            setup_logging(
                level=session.settings.log_level, json_output=session.settings.json_logs
            )
        session.attach()
        logger.info("pioconsole_api_starting")
        yield
        session.close()
        logger.info("pioconsole_api_stopped")

    app = FastAPI(
        title="pioconsole API",
        description="Build, upload, test and serial monitor orchestration",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.session = session

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from pioconsole.api.routes import build, config, notifications, serial

    app.include_router(build.router, prefix="/api")
    app.include_router(serial.router, prefix="/api")
    app.include_router(config.router, prefix="/api")
    app.include_router(notifications.router, prefix="/api")

    return app
