"""Conversion endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from tunebridge.api.dependencies import Client
from tunebridge.api.schemas import (
    APIError,
    ConvertRequest,
    ConvertResponse,
    ErrorDetail,
    ValidationResponse,
)
from tunebridge.core.exceptions import (
    CatalogUnavailableError,
    InvalidReferenceError,
    TunebridgeError,
    UnsupportedTypeError,
)
from tunebridge.core.references import ReferenceParser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/convert", tags=["convert"])


def _error(status_code: int, code: str, exc: Exception) -> HTTPException:
    """Build an HTTPException carrying the standard error envelope."""
    details = exc.details if isinstance(exc, TunebridgeError) else None
    message = exc.message if isinstance(exc, TunebridgeError) else str(exc) or code
    body = APIError(error=ErrorDetail(code=code, message=message, details=details or None))
    return HTTPException(status_code=status_code, detail=body.model_dump(by_alias=True))


@router.post(
    "",
    response_model=ConvertResponse,
    response_model_by_alias=True,
    operation_id="convert",
    summary="Convert a track or playlist",
    description="Resolve every track of a catalog reference against the backend pool.",
)
async def convert(request: ConvertRequest, client: Client) -> ConvertResponse:
    """Convert a catalog reference into backend search results."""
    try:
        report = await client.convert(request.reference, request.limit, request.failed_limit)
    except InvalidReferenceError as e:
        raise _error(422, "invalid_reference", e) from e
    except UnsupportedTypeError as e:
        raise _error(400, "unsupported_type", e) from e
    except CatalogUnavailableError as e:
        logger.warning(f"Catalog unavailable while converting {request.reference}: {e}")
        raise _error(502, "catalog_unavailable", e) from e
    except TimeoutError as e:
        raise _error(504, "timeout", e) from e

    return ConvertResponse.model_validate(report)


@router.post(
    "/validate",
    response_model=ValidationResponse,
    response_model_by_alias=True,
    operation_id="validateReference",
    summary="Validate a reference",
    description="Check whether a string is a well-formed track or playlist URL/URI.",
)
async def validate_reference(reference: str) -> ValidationResponse:
    """Check a reference without contacting the catalog."""
    return ValidationResponse(reference=reference, valid=ReferenceParser().is_valid(reference))
