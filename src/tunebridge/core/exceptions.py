"""Custom exception hierarchy for tunebridge."""

from typing import Any

from .types import BackendErrorKind


class TunebridgeError(Exception):
    """Base exception for all tunebridge errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(TunebridgeError):
    """Pool, backend or client misconfiguration detected at setup time."""

    pass


class InvalidReferenceError(TunebridgeError):
    """The catalog reference is missing or malformed."""

    def __init__(
        self,
        message: str,
        reference: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.reference = reference


class UnsupportedTypeError(TunebridgeError):
    """The catalog classified the reference outside the supported set."""

    def __init__(
        self,
        message: str,
        reference_type: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.reference_type = reference_type


class CatalogUnavailableError(TunebridgeError):
    """The source catalog could not be reached or answered with an error."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code


class ResolutionError(TunebridgeError):
    """A single item could not be resolved."""

    pass


class NoBackendAvailableError(ResolutionError):
    """The pool is empty or every backend is excluded."""

    pass


class BackendQueryError(ResolutionError):
    """A backend failed to answer a query."""

    def __init__(
        self,
        message: str,
        backend: str,
        kind: BackendErrorKind = BackendErrorKind.TRANSPORT,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.backend = backend
        self.kind = kind
        self.status_code = status_code


class CacheError(TunebridgeError):
    """Cache operation failed."""

    pass
