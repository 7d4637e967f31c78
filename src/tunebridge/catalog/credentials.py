"""Access tokens for the catalog API, refreshed on demand."""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar

import httpx

from tunebridge.core.exceptions import CatalogUnavailableError, ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessToken:
    """A bearer token and the monotonic time it stops being valid."""

    value: str
    expires_at: float

    def expires_within(self, seconds: float, now: float | None = None) -> bool:
        now = time.monotonic() if now is None else now
        return now + seconds >= self.expires_at


class CredentialProvider(ABC):
    """Hands out a valid bearer token on every call."""

    @abstractmethod
    async def get_token(self) -> str: ...

    def invalidate(self) -> None:
        """Forget the current token, e.g. after the API rejected it."""
        return None

    async def close(self) -> None:
        return None


class StaticTokenProvider(CredentialProvider):
    """Provider for a token obtained elsewhere."""

    def __init__(self, token: str) -> None:
        if not token:
            raise ConfigurationError("Static token provider needs a token")
        self._token = token

    async def get_token(self) -> str:
        return self._token


class ClientCredentialsProvider(CredentialProvider):
    """
    Spotify client-credentials grant.

    The token is fetched lazily and refreshed when it is missing or about to
    expire. Concurrent callers share a single refresh.
    """

    TOKEN_URL: ClassVar[str] = "https://accounts.spotify.com/api/token"
    EXPIRY_SKEW: ClassVar[float] = 60.0

    def __init__(
        self,
        client_id: str | None,
        client_secret: str | None,
        *,
        token_url: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        if not client_id or not client_secret:
            raise ConfigurationError("Catalog client ID and secret are required")

        self._client_id = client_id
        self._client_secret = client_secret
        self._token_url = token_url or self.TOKEN_URL
        self._timeout = timeout
        self._token: AccessToken | None = None
        self._lock = asyncio.Lock()
        self._client: httpx.AsyncClient | None = None

    @property
    def token(self) -> AccessToken | None:
        return self._token

    async def get_token(self) -> str:
        async with self._lock:
            if self._token is None or self._token.expires_within(self.EXPIRY_SKEW):
                self._token = await self._refresh()
            return self._token.value

    def invalidate(self) -> None:
        self._token = None

    async def _refresh(self) -> AccessToken:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout))

        try:
            response = await self._client.post(
                self._token_url,
                data={"grant_type": "client_credentials"},
                auth=(self._client_id, self._client_secret),
            )
        except httpx.HTTPError as e:
            raise CatalogUnavailableError(f"Token request failed: {e}") from e

        if not response.is_success:
            raise CatalogUnavailableError(
                f"Token request rejected ({response.status_code})",
                status_code=response.status_code,
            )

        try:
            data = response.json()
            value = data["access_token"]
            expires_in = float(data.get("expires_in", 3600))
        except (ValueError, KeyError, TypeError) as e:
            raise CatalogUnavailableError(f"Malformed token response: {e}") from e

        logger.debug(f"Obtained catalog token valid for {expires_in:.0f}s")
        return AccessToken(value=value, expires_at=time.monotonic() + expires_in)

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
