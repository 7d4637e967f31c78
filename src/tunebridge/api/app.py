"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tunebridge import __version__
from tunebridge.api.routes import convert_router, health_router
from tunebridge.client import TunebridgeClient
from tunebridge.config import TunebridgeSettings, get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan manager.

    Handles startup and shutdown of resources.
    """
    settings: TunebridgeSettings = getattr(app.state, "settings", None) or get_settings()
    logging.getLogger("tunebridge").setLevel(settings.log_level.upper())

    logger.info("Initializing tunebridge client...")
    client = TunebridgeClient(settings)
    await client.__aenter__()
    app.state.client = client

    if not client.pool:
        logger.warning("No Lavalink nodes configured; every conversion will fail")

    logger.info("Application startup complete")

    yield

    # Cleanup
    logger.info("Shutting down application...")
    await client.close()
    app.state.client = None
    logger.info("Application shutdown complete")


def create_app(
    *,
    settings: TunebridgeSettings | None = None,
    title: str = "Tunebridge API",
    description: str = "Convert catalog tracks and playlists into search backend results",
    cors_origins: list[str] | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings for the lifespan; loaded from environment if omitted
        title: API title for OpenAPI docs
        description: API description for OpenAPI docs
        cors_origins: List of allowed CORS origins

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=title,
        description=description,
        version=__version__,
        lifespan=lifespan,
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )
    app.state.settings = settings

    if cors_origins is None:
        cors_origins = ["http://localhost:3000"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routes
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(convert_router, prefix="/api/v1")

    return app


# For uvicorn direct execution
app = create_app()
