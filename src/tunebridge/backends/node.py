"""A single Lavalink search node with load and health tracking."""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, ClassVar
from uuid import uuid4

import httpx
from pydantic import BaseModel, Field, ValidationError

from tunebridge.core.exceptions import BackendQueryError, ConfigurationError
from tunebridge.core.models import BackendError, LoadedTrack, TrackInfo
from tunebridge.core.types import BackendErrorKind
from tunebridge.observability import Event, LoggingObserver, PipelineObserver

logger = logging.getLogger(__name__)


class BackendConfig(BaseModel):
    """Configuration for a backend node."""

    url: str | None = Field(default=None, description="Node base URL, e.g. http://localhost:2333")
    password: str | None = Field(default=None, description="Node password")
    name: str | None = Field(default=None, description="Unique name; generated when absent")
    search_prefix: str = Field(default="ytsearch", description="Search source prefix")
    timeout: float = Field(default=10.0, gt=0, description="Request timeout in seconds")
    cooldown: float = Field(
        default=30.0, ge=0, description="Initial exclusion after a non-transient error"
    )
    max_cooldown: float = Field(default=600.0, ge=0, description="Upper bound for exclusion")


class BackendStatus(BaseModel):
    """Point-in-time view of a backend, for health reporting."""

    name: str
    url: str
    load: int
    available: bool
    last_error: BackendError | None = None


class Backend:
    """
    One remote search endpoint.

    Tracks how many queries are in flight (``load``) and the last error it
    ran into. Transient errors leave the backend eligible for selection;
    authentication failures exclude it for a cool-down that doubles on each
    consecutive failure, after which it is admitted for one more try.
    """

    LOADTRACKS_PATH: ClassVar[str] = "/loadtracks"
    AUTH_FAILURE_CODES: ClassVar[frozenset[int]] = frozenset({401, 403})

    def __init__(
        self,
        config: BackendConfig,
        observer: PipelineObserver | None = None,
    ) -> None:
        if not config.url or not config.password:
            raise ConfigurationError(
                "Backend requires both a url and a password",
                details={"name": config.name, "url": config.url},
            )

        try:
            url = httpx.URL(config.url)
        except httpx.InvalidURL as e:
            raise ConfigurationError(
                f"Backend url is not a valid URL: {config.url!r}",
                details={"name": config.name},
            ) from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ConfigurationError(
                f"Backend url must be an http(s) URL: {config.url!r}",
                details={"name": config.name},
            )

        self.config = config
        self.name: str = config.name or str(uuid4())
        self.url = url
        self._password = config.password
        self._observer = observer or LoggingObserver()
        self._client: httpx.AsyncClient | None = None

        self._load = 0
        self._lock = asyncio.Lock()
        self._last_error: BackendError | None = None
        self._consecutive_failures = 0
        self._excluded_until = 0.0

    def __repr__(self) -> str:
        return f"Backend(name={self.name!r}, url={str(self.url)!r}, load={self._load})"

    @property
    def load(self) -> int:
        """Number of queries currently in flight on this backend."""
        return self._load

    @property
    def last_error(self) -> BackendError | None:
        return self._last_error

    def is_available(self, now: float | None = None) -> bool:
        """Whether selection may hand out this backend right now."""
        error = self._last_error
        if error is None or error.transient:
            return True
        now = time.monotonic() if now is None else now
        return now >= self._excluded_until

    @property
    def excluded_until(self) -> float:
        """Monotonic time at which a non-transient exclusion ends."""
        return self._excluded_until

    def record_error(self, error: BackendError) -> None:
        """Flag the backend with ``error`` and apply the re-admission policy."""
        self._last_error = error
        if error.transient:
            return

        self._consecutive_failures += 1
        cooldown = min(
            self.config.cooldown * 2 ** (self._consecutive_failures - 1),
            self.config.max_cooldown,
        )
        self._excluded_until = time.monotonic() + cooldown
        logger.warning(
            f"Backend {self.name} excluded for {cooldown:.0f}s after {error.kind}: {error.message}"
        )

    def clear_error(self) -> None:
        """Forget the last error and any pending exclusion."""
        self._last_error = None
        self._consecutive_failures = 0
        self._excluded_until = 0.0

    def status(self) -> BackendStatus:
        return BackendStatus(
            name=self.name,
            url=str(self.url),
            load=self._load,
            available=self.is_available(),
            last_error=self._last_error,
        )

    async def _acquire(self) -> None:
        async with self._lock:
            self._load += 1

    async def _release(self) -> None:
        async with self._lock:
            self._load -= 1

    def _get_default_headers(self) -> dict[str, str]:
        return {
            "Authorization": self._password,
            "User-Agent": "tunebridge/1.0",
            "Accept": "application/json",
        }

    @asynccontextmanager
    async def _get_client(self) -> AsyncIterator[httpx.AsyncClient]:
        """Get or create HTTP client with proper lifecycle."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.url,
                timeout=httpx.Timeout(self.config.timeout),
                headers=self._get_default_headers(),
                follow_redirects=True,
            )

        try:
            yield self._client
        except httpx.HTTPError as e:
            raise BackendQueryError(
                message=f"HTTP error: {e}",
                backend=self.name,
                kind=BackendErrorKind.TRANSPORT,
            ) from e

    @property
    def has_client(self) -> bool:
        return self._client is not None and not self._client.is_closed

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def query(self, text: str) -> LoadedTrack | None:
        """
        Search the node and return its top result.

        Args:
            text: The search text

        Returns:
            The first track of the result set, or None when there is no
            match or the query failed. Failures are recorded on the backend
            rather than raised.
        """
        if not text or not text.strip():
            raise ValueError("Missing search query")

        await self._acquire()
        try:
            data = await self._request(text)
            result = self._parse_result(data)
        except BackendQueryError as e:
            self._handle_failure(e, text)
            return None
        finally:
            await self._release()

        if self._last_error is not None:
            logger.info(f"Backend {self.name} recovered")
        self.clear_error()

        self._observer.on_debug(
            Event(
                "backend.query",
                {"backend": self.name, "query": text, "found": result is not None},
            )
        )
        return result

    async def _request(self, text: str) -> Any:
        params = {"identifier": f"{self.config.search_prefix}:{text}"}

        async with self._get_client() as client:
            response = await client.get(self.LOADTRACKS_PATH, params=params)

        if response.status_code in self.AUTH_FAILURE_CODES:
            raise BackendQueryError(
                message=f"Authentication rejected ({response.status_code})",
                backend=self.name,
                kind=BackendErrorKind.AUTH,
                status_code=response.status_code,
            )
        if not response.is_success:
            raise BackendQueryError(
                message=f"Unexpected status {response.status_code}",
                backend=self.name,
                kind=BackendErrorKind.HTTP,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise BackendQueryError(
                message=f"Malformed response body: {e}",
                backend=self.name,
                kind=BackendErrorKind.PROTOCOL,
                status_code=response.status_code,
            ) from e

    def _parse_result(self, data: Any) -> LoadedTrack | None:
        """Take the first track of a loadtracks payload."""
        if not isinstance(data, dict):
            raise BackendQueryError(
                message="Response is not a JSON object",
                backend=self.name,
                kind=BackendErrorKind.PROTOCOL,
            )

        if error := data.get("error"):
            raise BackendQueryError(
                message=str(error),
                backend=self.name,
                kind=BackendErrorKind.LOAD_FAILED,
            )

        if data.get("loadType") == "LOAD_FAILED":
            exception = data.get("exception") or {}
            if not isinstance(exception, dict):
                exception = {"message": str(exception)}
            raise BackendQueryError(
                message=exception.get("message") or "Search failed to load",
                backend=self.name,
                kind=BackendErrorKind.LOAD_FAILED,
                details={"severity": exception.get("severity")},
            )

        tracks = data.get("tracks") or []
        if not isinstance(tracks, list):
            raise BackendQueryError(
                message=f"Expected a list of tracks, got {type(tracks).__name__}",
                backend=self.name,
                kind=BackendErrorKind.PROTOCOL,
            )
        if not tracks:
            return None

        try:
            first = tracks[0]
            return LoadedTrack(
                track=first["track"],
                info=TrackInfo.model_validate(first["info"]),
            )
        except (KeyError, TypeError, ValidationError) as e:
            raise BackendQueryError(
                message=f"Unexpected track payload: {e}",
                backend=self.name,
                kind=BackendErrorKind.PROTOCOL,
            ) from e

    def _handle_failure(self, error: BackendQueryError, text: str) -> None:
        self.record_error(
            BackendError(
                kind=error.kind,
                message=error.message,
                status_code=error.status_code,
            )
        )
        self._observer.on_error(
            error,
            Event(
                "backend.query_failed",
                {"backend": self.name, "query": text, "kind": str(error.kind)},
            ),
        )

    async def __aenter__(self) -> "Backend":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
