"""FastAPI dependency injection."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from tunebridge.client import TunebridgeClient


async def get_client(request: Request) -> TunebridgeClient:
    """Get the initialized tunebridge client from app state."""
    client = getattr(request.app.state, "client", None)
    if client is None or not client.is_initialized:
        raise HTTPException(status_code=503, detail="Service is not ready")
    return client


async def get_optional_client(request: Request) -> TunebridgeClient | None:
    """Get the client from app state without requiring it to be ready."""
    return getattr(request.app.state, "client", None)


# Type aliases for cleaner dependency injection
Client = Annotated[TunebridgeClient, Depends(get_client)]
OptionalClient = Annotated[TunebridgeClient | None, Depends(get_optional_client)]
