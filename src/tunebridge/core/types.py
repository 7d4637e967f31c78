"""Core enums and type definitions."""

from enum import StrEnum


class ReferenceType(StrEnum):
    """Classification of a catalog reference."""

    ITEM = "item"
    COLLECTION = "collection"


class BackendErrorKind(StrEnum):
    """Why a backend query failed."""

    TRANSPORT = "transport"  # Connection refused, DNS, timeouts
    HTTP = "http"  # Non-2xx status other than auth failures
    AUTH = "auth"  # 401/403, usually a wrong node password
    PROTOCOL = "protocol"  # Unparseable or unexpected payload
    LOAD_FAILED = "load_failed"  # Node answered but could not load the search

    @property
    def transient(self) -> bool:
        """Whether the backend stays eligible for selection after this error."""
        return self is not BackendErrorKind.AUTH


class ItemStatus(StrEnum):
    """Outcome of a single item attempt inside a pipeline run."""

    COMPLETED = "completed"
    NOT_FOUND = "not_found"
    MISSING_IDENTITY = "missing_identity"
    NO_BACKEND = "no_backend"
    ERROR = "error"
