"""Core types, models, and utilities."""

from .exceptions import (
    BackendQueryError,
    CacheError,
    CatalogUnavailableError,
    ConfigurationError,
    InvalidReferenceError,
    NoBackendAvailableError,
    ResolutionError,
    TunebridgeError,
    UnsupportedTypeError,
)
from .models import (
    BackendError,
    CatalogPage,
    Classification,
    LoadedTrack,
    ReportCounts,
    ResolutionReport,
    ResolvedTrack,
    SourceItem,
    TrackInfo,
)
from .references import ParsedReference, ReferenceParser, parse_reference
from .types import BackendErrorKind, ItemStatus, ReferenceType

__all__ = [
    # Types
    "BackendErrorKind",
    "ItemStatus",
    "ReferenceType",
    # Models
    "BackendError",
    "CatalogPage",
    "Classification",
    "LoadedTrack",
    "ReportCounts",
    "ResolutionReport",
    "ResolvedTrack",
    "SourceItem",
    "TrackInfo",
    # References
    "ParsedReference",
    "ReferenceParser",
    "parse_reference",
    # Exceptions
    "BackendQueryError",
    "CacheError",
    "CatalogUnavailableError",
    "ConfigurationError",
    "InvalidReferenceError",
    "NoBackendAvailableError",
    "ResolutionError",
    "TunebridgeError",
    "UnsupportedTypeError",
]
