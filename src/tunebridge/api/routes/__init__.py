"""API route modules."""

from tunebridge.api.routes.convert import router as convert_router
from tunebridge.api.routes.health import router as health_router

__all__ = [
    "convert_router",
    "health_router",
]
