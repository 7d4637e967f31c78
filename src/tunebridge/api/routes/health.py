"""Health check endpoints."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter

from tunebridge import __version__
from tunebridge.api.dependencies import OptionalClient
from tunebridge.api.schemas import BackendStatusResponse, HealthResponse
from tunebridge.core.exceptions import CacheError

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    response_model_by_alias=True,
    operation_id="getHealth",
    summary="Health check",
    description="Check the health status of the API, its backends and its cache.",
)
async def health_check(client: OptionalClient) -> HealthResponse:
    """Check API health status."""
    services: dict[str, Literal["up", "down", "unknown"]] = {}
    overall_status: Literal["healthy", "degraded", "unhealthy"] = "healthy"

    if client is None or client.pool is None:
        return HealthResponse(
            status="unhealthy",
            version=__version__,
            services={"backends": "unknown", "redis": "unknown"},
        )

    # Check backends
    statuses = client.pool.snapshot()
    available = [s for s in statuses if s.available]
    if not statuses or not available:
        services["backends"] = "down"
        overall_status = "unhealthy"
    else:
        services["backends"] = "up"
        if len(available) < len(statuses):
            overall_status = "degraded"

    # Check Redis
    cache = client.cache
    ping = getattr(cache, "ping", None)
    if ping is None:
        services["redis"] = "unknown"
    else:
        try:
            services["redis"] = "up" if await ping() else "down"
        except CacheError:
            services["redis"] = "down"
        if services["redis"] == "down" and overall_status == "healthy":
            overall_status = "degraded"

    return HealthResponse(
        status=overall_status,
        version=__version__,
        services=services,
        total_load=client.pool.total_load,
        backends=[BackendStatusResponse.model_validate(s) for s in statuses],
    )


@router.get(
    "/ready",
    operation_id="getReady",
    summary="Readiness check",
    description="Check if the API is ready to serve traffic.",
)
async def readiness_check(client: OptionalClient) -> dict[str, bool]:
    """Check if API is ready to serve traffic."""
    ready = client is not None and client.is_initialized and bool(client.pool)

    return {"ready": ready}
