"""Integration test fixtures for the HTTP API."""

from __future__ import annotations

from typing import AsyncIterator

import pytest
import respx
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient, Response

from tests.fakes import (
    LAVALINK_PASSWORD,
    LAVALINK_URL,
    FakeCache,
    FakeCatalog,
    loadtracks_payload,
    single_track,
)
from tunebridge.api.app import create_app
from tunebridge.backends import BackendPool
from tunebridge.client import TunebridgeClient
from tunebridge.config import TunebridgeSettings
from tunebridge.core.models import Classification


class ScriptedCatalog(FakeCatalog):
    """Fake catalog whose classification or failure tests can swap."""

    def __init__(self) -> None:
        super().__init__(single_track())
        self.error: Exception | None = None

    async def classify(self, reference: str) -> Classification:
        if self.error is not None:
            raise self.error
        return await super().classify(reference)


class PingableCache(FakeCache):
    """Fake cache that also answers health pings."""

    def __init__(self) -> None:
        super().__init__()
        self.healthy = True

    async def ping(self) -> bool:
        return self.healthy


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
def settings() -> TunebridgeSettings:
    return TunebridgeSettings(redis_url=None, default_limit=20)


@pytest.fixture
def catalog() -> ScriptedCatalog:
    return ScriptedCatalog()


@pytest.fixture
def cache() -> PingableCache:
    return PingableCache()


@pytest.fixture
def pool() -> BackendPool:
    return BackendPool(
        [
            {"url": LAVALINK_URL, "password": LAVALINK_PASSWORD, "name": "main"},
            {"url": "http://localhost:2334", "password": LAVALINK_PASSWORD, "name": "backup"},
        ]
    )


@pytest.fixture
def lavalink():
    """Mocked Lavalink nodes answering every search with one track."""
    with respx.mock(assert_all_called=False) as router:
        router.get(f"{LAVALINK_URL}/loadtracks", name="main").mock(
            return_value=Response(200, json=loadtracks_payload())
        )
        router.get("http://localhost:2334/loadtracks", name="backup").mock(
            return_value=Response(200, json=loadtracks_payload())
        )
        yield router


@pytest.fixture
async def app(
    settings: TunebridgeSettings,
    catalog: ScriptedCatalog,
    pool: BackendPool,
    cache: PingableCache,
) -> AsyncIterator[FastAPI]:
    """
    Application with an initialized client on its state.

    ASGITransport does not run the lifespan, so the client is set up here
    with fake catalog and cache and a pool of mocked nodes.
    """
    application = create_app(settings=settings)
    async with TunebridgeClient(settings, catalog=catalog, pool=pool, cache=cache) as client:
        application.state.client = client
        yield application


@pytest.fixture
async def test_client(app: FastAPI, lavalink) -> AsyncIterator[AsyncClient]:
    """Create async test client for API testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
