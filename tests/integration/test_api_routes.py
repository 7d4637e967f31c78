"""Integration tests for API routes."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from httpx import AsyncClient

from tests.fakes import PLAYLIST_URL, TRACK_URL, TRACK_URI, collection, make_item
from tunebridge.api.app import create_app
from tunebridge.backends import BackendPool
from tunebridge.config import TunebridgeSettings
from tunebridge.core.exceptions import CatalogUnavailableError, InvalidReferenceError
from tunebridge.core.models import BackendError, Classification
from tunebridge.core.types import BackendErrorKind

pytestmark = [pytest.mark.integration]


# ============================================================================
# Health Check Tests
# ============================================================================


class TestHealthEndpoint:
    """Tests for the /api/v1/health endpoint."""

    async def test_healthy(self, test_client: AsyncClient):
        """All backends up and a reachable cache is healthy."""
        response = await test_client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["services"] == {"backends": "up", "redis": "up"}
        assert data["totalLoad"] == 0
        assert [b["name"] for b in data["backends"]] == ["main", "backup"]

    async def test_health_includes_version(self, test_client: AsyncClient):
        response = await test_client.get("/api/v1/health")

        assert isinstance(response.json()["version"], str)

    async def test_degraded_when_backend_excluded(self, test_client: AsyncClient, pool: BackendPool):
        pool.get("backup").record_error(BackendError(kind=BackendErrorKind.AUTH, message="Authentication rejected"))

        data = (await test_client.get("/api/v1/health")).json()

        assert data["status"] == "degraded"
        backup = data["backends"][1]
        assert backup["available"] is False
        assert backup["lastError"]["kind"] == "auth"

    async def test_unhealthy_when_all_excluded(self, test_client: AsyncClient, pool: BackendPool):
        for backend in pool.backends:
            backend.record_error(BackendError(kind=BackendErrorKind.AUTH, message="Authentication rejected"))

        data = (await test_client.get("/api/v1/health")).json()

        assert data["status"] == "unhealthy"
        assert data["services"]["backends"] == "down"

    async def test_degraded_when_cache_down(self, test_client: AsyncClient, cache):
        cache.healthy = False

        data = (await test_client.get("/api/v1/health")).json()

        assert data["status"] == "degraded"
        assert data["services"]["redis"] == "down"

    async def test_no_client(self, test_client: AsyncClient, app: FastAPI):
        app.state.client = None

        data = (await test_client.get("/api/v1/health")).json()

        assert data["status"] == "unhealthy"


class TestReadinessEndpoint:
    """Tests for the /api/v1/ready endpoint."""

    async def test_ready(self, test_client: AsyncClient):
        response = await test_client.get("/api/v1/ready")

        assert response.status_code == 200
        assert response.json() == {"ready": True}

    async def test_not_ready_without_client(self, test_client: AsyncClient, app: FastAPI):
        app.state.client = None

        assert (await test_client.get("/api/v1/ready")).json() == {"ready": False}


# ============================================================================
# Convert Endpoint Tests
# ============================================================================


class TestConvertEndpoint:
    """Tests for the /api/v1/convert endpoint."""

    async def test_track(self, test_client: AsyncClient):
        response = await test_client.post("/api/v1/convert", json={"reference": TRACK_URL})

        assert response.status_code == 200
        data = response.json()
        assert data["type"] == "item"
        assert data["limit"] == 1
        assert data["failedLimit"] is True
        assert data["counts"] == {"completed": 1, "failed": 0, "total": 1}
        track = data["completed"][0]
        assert track["sourceUri"] == TRACK_URI
        assert track["info"]["identifier"] == "dQw4w9WgXcQ"
        assert track["info"]["isStream"] is False
        assert "startedAt" in data
        assert data["elapsed"] >= 0

    async def test_playlist_with_limit(self, test_client: AsyncClient, catalog):
        catalog.classification = collection(5)
        catalog.items = [make_item(i) for i in range(1, 6)]

        response = await test_client.post(
            "/api/v1/convert",
            json={"reference": PLAYLIST_URL, "limit": 2, "failedLimit": False},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["type"] == "collection"
        assert data["limit"] == 2
        assert data["failedLimit"] is False
        assert data["counts"]["completed"] == 2

    async def test_playlist_all(self, test_client: AsyncClient, catalog):
        catalog.classification = collection(3)
        catalog.items = [make_item(1), make_item(2, name=None), make_item(3)]

        response = await test_client.post("/api/v1/convert", json={"reference": PLAYLIST_URL, "limit": "all"})

        data = response.json()
        assert data["limit"] is None
        assert data["failed"] == [make_item(2).uri]
        assert data["counts"]["total"] == 3

    async def test_second_call_served_from_cache(self, test_client: AsyncClient, lavalink):
        await test_client.post("/api/v1/convert", json={"reference": TRACK_URL})
        await test_client.post("/api/v1/convert", json={"reference": TRACK_URL})

        assert lavalink["main"].call_count + lavalink["backup"].call_count == 1

    async def test_invalid_reference(self, test_client: AsyncClient):
        response = await test_client.post("/api/v1/convert", json={"reference": "not a link"})

        assert response.status_code == 422
        assert response.json()["detail"]["error"]["code"] == "invalid_reference"

    async def test_unknown_item(self, test_client: AsyncClient, catalog):
        catalog.error = InvalidReferenceError("Catalog has no track 4cOdK2wGLETKBW3PvgPWqT")

        response = await test_client.post("/api/v1/convert", json={"reference": TRACK_URL})

        assert response.status_code == 422

    async def test_unsupported_type(self, test_client: AsyncClient, catalog):
        catalog.classification = Classification(type="album", id="1DFixLWuPkv3KT3TnV35m3")

        response = await test_client.post(
            "/api/v1/convert",
            json={"reference": "https://open.spotify.com/album/1DFixLWuPkv3KT3TnV35m3"},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error"]["code"] == "unsupported_type"

    async def test_catalog_unavailable(self, test_client: AsyncClient, catalog):
        catalog.error = CatalogUnavailableError("Catalog request failed (503)", status_code=503)

        response = await test_client.post("/api/v1/convert", json={"reference": TRACK_URL})

        assert response.status_code == 502
        assert response.json()["detail"]["error"]["code"] == "catalog_unavailable"

    async def test_timeout(self, test_client: AsyncClient, catalog):
        catalog.error = TimeoutError()

        response = await test_client.post("/api/v1/convert", json={"reference": TRACK_URL})

        assert response.status_code == 504
        assert response.json()["detail"]["error"]["code"] == "timeout"

    async def test_empty_reference_rejected(self, test_client: AsyncClient):
        response = await test_client.post("/api/v1/convert", json={"reference": ""})

        assert response.status_code == 422

    async def test_not_ready(self, test_client: AsyncClient, app: FastAPI):
        app.state.client = None

        response = await test_client.post("/api/v1/convert", json={"reference": TRACK_URL})

        assert response.status_code == 503


# ============================================================================
# Validate Endpoint Tests
# ============================================================================


class TestValidateEndpoint:
    """Tests for the /api/v1/convert/validate endpoint."""

    @pytest.mark.parametrize(
        "reference,valid",
        [
            (TRACK_URL, True),
            (PLAYLIST_URL, True),
            ("spotify:album:1DFixLWuPkv3KT3TnV35m3", True),
            ("https://example.com/track/1", False),
        ],
    )
    async def test_validate(self, test_client: AsyncClient, reference: str, valid: bool):
        response = await test_client.post("/api/v1/convert/validate", params={"reference": reference})

        assert response.status_code == 200
        assert response.json() == {"reference": reference, "valid": valid}


# ============================================================================
# Lifespan Tests
# ============================================================================


class TestLifespan:
    """Tests for client setup in the application lifespan."""

    async def test_client_lifecycle(self):
        settings = TunebridgeSettings(
            spotify_client_id="test-client-id",
            spotify_client_secret="test-client-secret",
            lavalink_nodes=[{"url": "http://localhost:2333", "password": "youshallnotpass", "name": "main"}],
            redis_url=None,
        )
        application = create_app(settings=settings)

        async with application.router.lifespan_context(application):
            client = application.state.client
            assert client.is_initialized is True
            assert [b.name for b in client.pool.backends] == ["main"]

        assert application.state.client is None
