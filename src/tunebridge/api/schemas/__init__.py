"""API schema definitions."""

from tunebridge.api.schemas.base import (
    APIBaseSchema,
    APIError,
    ErrorDetail,
)
from tunebridge.api.schemas.requests import ConvertRequest
from tunebridge.api.schemas.responses import (
    BackendErrorResponse,
    BackendStatusResponse,
    ConvertResponse,
    CountsResponse,
    HealthResponse,
    ResolvedTrackResponse,
    TrackInfoResponse,
    ValidationResponse,
)

__all__ = [
    # Base
    "APIBaseSchema",
    "APIError",
    "ErrorDetail",
    # Requests
    "ConvertRequest",
    # Responses
    "BackendErrorResponse",
    "BackendStatusResponse",
    "ConvertResponse",
    "CountsResponse",
    "HealthResponse",
    "ResolvedTrackResponse",
    "TrackInfoResponse",
    "ValidationResponse",
]
