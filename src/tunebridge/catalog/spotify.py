"""Spotify Web API catalog client."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncIterator, ClassVar

import httpx

from tunebridge.catalog.base import CatalogClient
from tunebridge.catalog.credentials import ClientCredentialsProvider, CredentialProvider
from tunebridge.core.exceptions import CatalogUnavailableError, InvalidReferenceError
from tunebridge.core.models import CatalogPage, Classification, SourceItem
from tunebridge.core.references import ReferenceParser
from tunebridge.core.types import ReferenceType

if TYPE_CHECKING:
    from tunebridge.config import TunebridgeSettings

logger = logging.getLogger(__name__)


class SpotifyCatalogClient(CatalogClient):
    """
    Reads tracks and playlists from the Spotify Web API.

    API Documentation: https://developer.spotify.com/documentation/web-api
    """

    BASE_URL: ClassVar[str] = "https://api.spotify.com/v1"
    max_page_size: ClassVar[int] = 100

    PLAYLIST_FIELDS: ClassVar[str] = "id,uri,name,owner(display_name),tracks(total)"
    PAGE_FIELDS: ClassVar[str] = (
        "total,offset,next,items(track(id,uri,name,duration_ms,is_local,artists(name)))"
    )

    def __init__(
        self,
        credentials: CredentialProvider,
        *,
        market: str | None = None,
        base_url: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._credentials = credentials
        self._market = market
        self._base_url = base_url or self.BASE_URL
        self._timeout = timeout
        self._parser = ReferenceParser()
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: "TunebridgeSettings") -> "SpotifyCatalogClient":
        credentials = ClientCredentialsProvider(
            settings.spotify_client_id,
            settings.spotify_client_secret,
        )
        return cls(credentials, market=settings.spotify_market)

    @asynccontextmanager
    async def _get_client(self) -> AsyncIterator[httpx.AsyncClient]:
        """Get or create HTTP client with proper lifecycle."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=httpx.Timeout(self._timeout),
                headers={"Accept": "application/json", "User-Agent": "tunebridge/1.0"},
                follow_redirects=True,
            )

        try:
            yield self._client
        except httpx.HTTPError as e:
            raise CatalogUnavailableError(f"HTTP error: {e}") from e

    async def close(self) -> None:
        """Close the HTTP client and the credential provider."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
        await self._credentials.close()

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """GET an API path, retrying once with a fresh token on 401."""
        params = {k: v for k, v in (params or {}).items() if v is not None}

        for attempt in range(2):
            token = await self._credentials.get_token()
            async with self._get_client() as client:
                response = await client.get(
                    path,
                    params=params,
                    headers={"Authorization": f"Bearer {token}"},
                )

            if response.status_code == 401 and attempt == 0:
                logger.debug("Catalog token rejected, refreshing")
                self._credentials.invalidate()
                continue
            break

        if response.status_code == 429:
            raise CatalogUnavailableError(
                "Catalog rate limit exceeded",
                status_code=429,
                details={"retry_after": response.headers.get("Retry-After")},
            )
        if not response.is_success:
            raise CatalogUnavailableError(
                f"Catalog request failed ({response.status_code}): {path}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise CatalogUnavailableError(f"Malformed catalog response: {e}") from e
        if not isinstance(data, dict):
            raise CatalogUnavailableError("Catalog response is not a JSON object")
        return data

    async def classify(self, reference: str) -> Classification:
        parsed = self._parser.parse(reference)

        try:
            if parsed.kind == "track":
                data = await self._get_json(f"/tracks/{parsed.id}", {"market": self._market})
                item = self._parse_track(data)
                return Classification(
                    type=ReferenceType.ITEM,
                    id=item.id or parsed.id,
                    uri=item.uri or parsed.uri,
                    name=item.name,
                    contributors=item.artists,
                )

            if parsed.kind == "playlist":
                data = await self._get_json(
                    f"/playlists/{parsed.id}",
                    {"fields": self.PLAYLIST_FIELDS, "market": self._market},
                )
                owner = (data.get("owner") or {}).get("display_name")
                return Classification(
                    type=ReferenceType.COLLECTION,
                    id=data.get("id") or parsed.id,
                    uri=data.get("uri") or parsed.uri,
                    name=data.get("name"),
                    contributors=[owner] if owner else [],
                    total=(data.get("tracks") or {}).get("total"),
                )
        except CatalogUnavailableError as e:
            if e.status_code in (400, 404):
                raise InvalidReferenceError(
                    f"Catalog has no {parsed.kind} {parsed.id}",
                    reference=reference,
                ) from e
            raise

        return Classification(type=parsed.kind, id=parsed.id, uri=parsed.uri)

    async def get_page(
        self,
        collection_id: str,
        offset: int,
        limit: int,
    ) -> CatalogPage:
        limit = max(1, min(limit, self.max_page_size))
        data = await self._get_json(
            f"/playlists/{collection_id}/tracks",
            {
                "offset": offset,
                "limit": limit,
                "fields": self.PAGE_FIELDS,
                "market": self._market,
                "additional_types": "track",
            },
        )

        items = [self._parse_track(entry.get("track")) for entry in data.get("items") or []]
        return CatalogPage(
            items=items,
            total=data.get("total") or 0,
            offset=data.get("offset") or offset,
            has_next=data.get("next") is not None,
        )

    @staticmethod
    def _parse_track(track: dict[str, Any] | None) -> SourceItem:
        """Build a source item; removed or unavailable entries come out empty."""
        if not track:
            return SourceItem()

        return SourceItem(
            uri=track.get("uri"),
            id=track.get("id"),
            name=track.get("name"),
            artists=[a["name"] for a in track.get("artists") or [] if a.get("name")],
            duration_ms=track.get("duration_ms"),
        )
