"""Request schemas for API endpoints."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import Field

from tunebridge.api.schemas.base import APIBaseSchema


class ConvertRequest(APIBaseSchema):
    """Request to convert a track or playlist."""

    reference: Annotated[
        str,
        Field(
            min_length=1,
            max_length=500,
            description="Catalog URL or URI of a track or playlist.",
        ),
    ]

    limit: Annotated[
        int | Literal["all"] | None,
        Field(
            default=None,
            description="Maximum tracks for playlists. Omit for the default, 'all' for no cap.",
        ),
    ]

    failed_limit: Annotated[
        bool,
        Field(
            default=True,
            description="Whether tracks that could not be resolved count toward the limit.",
        ),
    ]
