"""Tests for the Spotify catalog client."""

from __future__ import annotations

from typing import Any

import httpx
import pytest
import respx
from httpx import Response

from tests.fakes import ALBUM_URL, PLAYLIST_URL, TRACK_URL
from tunebridge.catalog.credentials import CredentialProvider, StaticTokenProvider
from tunebridge.catalog.spotify import SpotifyCatalogClient
from tunebridge.core.exceptions import CatalogUnavailableError, InvalidReferenceError
from tunebridge.core.types import ReferenceType

API = "https://api.spotify.com/v1"
TRACK_ID = "4cOdK2wGLETKBW3PvgPWqT"
PLAYLIST_ID = "37i9dQZF1DXcBWIGoYBM5M"

TRACK_JSON = {
    "id": TRACK_ID,
    "uri": f"spotify:track:{TRACK_ID}",
    "name": "Never Gonna Give You Up",
    "duration_ms": 213573,
    "artists": [{"name": "Rick Astley"}],
}

PLAYLIST_JSON = {
    "id": PLAYLIST_ID,
    "uri": f"spotify:playlist:{PLAYLIST_ID}",
    "name": "Today's Top Hits",
    "owner": {"display_name": "Spotify"},
    "tracks": {"total": 50},
}


def _page(tracks: list[dict[str, Any] | None], offset: int = 0, next_url: str | None = None) -> dict[str, Any]:
    return {
        "total": 50,
        "offset": offset,
        "next": next_url,
        "items": [{"track": track} for track in tracks],
    }


class RotatingTokens(CredentialProvider):
    """Hands out token-1, token-2, ... and counts invalidations."""

    def __init__(self) -> None:
        self.issued = 0
        self.invalidations = 0
        self._current: str | None = None

    async def get_token(self) -> str:
        if self._current is None:
            self.issued += 1
            self._current = f"token-{self.issued}"
        return self._current

    def invalidate(self) -> None:
        self.invalidations += 1
        self._current = None


@pytest.fixture
async def catalog():
    client = SpotifyCatalogClient(StaticTokenProvider("test-token"), market="US")
    yield client
    await client.close()


# ============================================================================
# Classification Tests
# ============================================================================


class TestClassify:
    """Tests for SpotifyCatalogClient.classify."""

    @respx.mock
    async def test_track(self, catalog: SpotifyCatalogClient):
        route = respx.get(f"{API}/tracks/{TRACK_ID}").mock(return_value=Response(200, json=TRACK_JSON))

        classification = await catalog.classify(TRACK_URL)

        assert classification.type == ReferenceType.ITEM
        assert classification.id == TRACK_ID
        assert classification.name == "Never Gonna Give You Up"
        assert classification.contributors == ["Rick Astley"]

        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer test-token"
        assert request.url.params["market"] == "US"

    @respx.mock
    async def test_playlist(self, catalog: SpotifyCatalogClient):
        route = respx.get(f"{API}/playlists/{PLAYLIST_ID}").mock(
            return_value=Response(200, json=PLAYLIST_JSON)
        )

        classification = await catalog.classify(PLAYLIST_URL)

        assert classification.type == ReferenceType.COLLECTION
        assert classification.name == "Today's Top Hits"
        assert classification.contributors == ["Spotify"]
        assert classification.total == 50
        assert route.calls.last.request.url.params["fields"] == SpotifyCatalogClient.PLAYLIST_FIELDS

    @respx.mock
    async def test_other_kind_not_fetched(self, catalog: SpotifyCatalogClient):
        """Albums are reported by kind so the caller can reject them."""
        classification = await catalog.classify(ALBUM_URL)

        assert classification.type == "album"
        assert classification.is_item is False
        assert classification.is_collection is False
        assert len(respx.calls) == 0

    @pytest.mark.parametrize("status", [400, 404])
    @respx.mock
    async def test_unknown_id(self, catalog: SpotifyCatalogClient, status: int):
        respx.get(f"{API}/tracks/{TRACK_ID}").mock(return_value=Response(status))

        with pytest.raises(InvalidReferenceError):
            await catalog.classify(TRACK_URL)

    async def test_malformed_reference(self, catalog: SpotifyCatalogClient):
        with pytest.raises(InvalidReferenceError):
            await catalog.classify("not a link")

    @respx.mock
    async def test_server_error(self, catalog: SpotifyCatalogClient):
        respx.get(f"{API}/tracks/{TRACK_ID}").mock(return_value=Response(503))

        with pytest.raises(CatalogUnavailableError) as exc_info:
            await catalog.classify(TRACK_URL)
        assert exc_info.value.status_code == 503

    @respx.mock
    async def test_rate_limited(self, catalog: SpotifyCatalogClient):
        respx.get(f"{API}/tracks/{TRACK_ID}").mock(
            return_value=Response(429, headers={"Retry-After": "5"})
        )

        with pytest.raises(CatalogUnavailableError) as exc_info:
            await catalog.classify(TRACK_URL)
        assert exc_info.value.status_code == 429
        assert exc_info.value.details["retry_after"] == "5"

    @respx.mock
    async def test_transport_error(self, catalog: SpotifyCatalogClient):
        respx.get(f"{API}/tracks/{TRACK_ID}").mock(side_effect=httpx.ConnectError("Connection refused"))

        with pytest.raises(CatalogUnavailableError):
            await catalog.classify(TRACK_URL)


# ============================================================================
# Token Handling Tests
# ============================================================================


class TestTokenRetry:
    """Tests for the retry after a rejected token."""

    @respx.mock
    async def test_retries_once_with_fresh_token(self):
        tokens = RotatingTokens()
        route = respx.get(f"{API}/tracks/{TRACK_ID}").mock(
            side_effect=[Response(401), Response(200, json=TRACK_JSON)]
        )

        async with SpotifyCatalogClient(tokens) as catalog:
            classification = await catalog.classify(TRACK_URL)

        assert classification.id == TRACK_ID
        assert tokens.invalidations == 1
        assert [c.request.headers["Authorization"] for c in route.calls] == [
            "Bearer token-1",
            "Bearer token-2",
        ]

    @respx.mock
    async def test_second_rejection_raises(self):
        tokens = RotatingTokens()
        route = respx.get(f"{API}/tracks/{TRACK_ID}").mock(return_value=Response(401))

        async with SpotifyCatalogClient(tokens) as catalog:
            with pytest.raises(CatalogUnavailableError) as exc_info:
                await catalog.classify(TRACK_URL)

        assert exc_info.value.status_code == 401
        assert route.call_count == 2


# ============================================================================
# Paging Tests
# ============================================================================


class TestGetPage:
    """Tests for SpotifyCatalogClient.get_page."""

    @respx.mock
    async def test_page(self, catalog: SpotifyCatalogClient):
        route = respx.get(f"{API}/playlists/{PLAYLIST_ID}/tracks").mock(
            return_value=Response(200, json=_page([TRACK_JSON], next_url=f"{API}/next"))
        )

        page = await catalog.get_page(PLAYLIST_ID, offset=0, limit=100)

        assert page.has_next is True
        assert page.total == 50
        assert page.items[0].uri == f"spotify:track:{TRACK_ID}"
        assert page.items[0].artists == ["Rick Astley"]
        assert page.items[0].duration_ms == 213573

        params = route.calls.last.request.url.params
        assert params["offset"] == "0"
        assert params["limit"] == "100"
        assert params["additional_types"] == "track"

    @respx.mock
    async def test_last_page(self, catalog: SpotifyCatalogClient):
        respx.get(f"{API}/playlists/{PLAYLIST_ID}/tracks").mock(
            return_value=Response(200, json=_page([TRACK_JSON], offset=49))
        )

        page = await catalog.get_page(PLAYLIST_ID, offset=49, limit=100)

        assert page.has_next is False
        assert page.offset == 49

    @respx.mock
    async def test_limit_clamped(self, catalog: SpotifyCatalogClient):
        route = respx.get(f"{API}/playlists/{PLAYLIST_ID}/tracks").mock(
            return_value=Response(200, json=_page([]))
        )

        await catalog.get_page(PLAYLIST_ID, offset=0, limit=500)

        assert route.calls.last.request.url.params["limit"] == "100"

    @respx.mock
    async def test_removed_tracks_are_empty_items(self, catalog: SpotifyCatalogClient):
        """Entries whose track is gone come back without identity."""
        respx.get(f"{API}/playlists/{PLAYLIST_ID}/tracks").mock(
            return_value=Response(200, json=_page([None, TRACK_JSON]))
        )

        page = await catalog.get_page(PLAYLIST_ID, offset=0, limit=100)

        assert len(page.items) == 2
        assert page.items[0].has_identity is False
        assert page.items[1].has_identity is True

    @respx.mock
    async def test_not_an_object(self, catalog: SpotifyCatalogClient):
        respx.get(f"{API}/playlists/{PLAYLIST_ID}/tracks").mock(return_value=Response(200, json=[1, 2]))

        with pytest.raises(CatalogUnavailableError):
            await catalog.get_page(PLAYLIST_ID, offset=0, limit=100)
