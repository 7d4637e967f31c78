"""Response schemas for API endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from tunebridge.api.schemas.base import APIBaseSchema
from tunebridge.core.types import BackendErrorKind, ReferenceType


class TrackInfoResponse(APIBaseSchema):
    """Metadata of a resolved track."""

    identifier: str
    title: str
    author: str | None = None
    length: int = 0
    uri: str | None = None
    is_stream: bool = False
    is_seekable: bool = True
    source_name: str | None = None


class ResolvedTrackResponse(APIBaseSchema):
    """A catalog track and what it resolved to."""

    source_uri: str
    track: str
    info: TrackInfoResponse


class CountsResponse(APIBaseSchema):
    """Tallies of a conversion."""

    completed: int
    failed: int
    total: int


class ConvertResponse(APIBaseSchema):
    """Response for a conversion."""

    reference: str
    type: ReferenceType
    name: str | None = None
    completed: list[ResolvedTrackResponse] = Field(default_factory=list)
    failed: list[str | None] = Field(default_factory=list)
    limit: int | None = None
    failed_limit: bool
    counts: CountsResponse
    started_at: datetime
    finished_at: datetime
    elapsed: float


class ValidationResponse(APIBaseSchema):
    """Response for reference validation."""

    reference: str
    valid: bool


class BackendErrorResponse(APIBaseSchema):
    """Last error recorded on a backend."""

    kind: BackendErrorKind
    message: str
    status_code: int | None = None
    timestamp: datetime


class BackendStatusResponse(APIBaseSchema):
    """Status of one backend."""

    name: str
    url: str
    load: int
    available: bool
    last_error: BackendErrorResponse | None = None


class HealthResponse(APIBaseSchema):
    """Health check response."""

    status: Literal["healthy", "degraded", "unhealthy"]
    version: str
    services: dict[str, Literal["up", "down", "unknown"]]
    total_load: int = 0
    backends: list[BackendStatusResponse] = Field(default_factory=list)
