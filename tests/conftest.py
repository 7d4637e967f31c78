"""Shared test fixtures for all tests."""

from __future__ import annotations

import pytest

from tests.fakes import LAVALINK_PASSWORD, LAVALINK_URL, TRACK_URI, FakeCache, make_track
from tunebridge.config import TunebridgeSettings
from tunebridge.core.models import LoadedTrack, SourceItem
from tunebridge.observability import RecordingObserver


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def observer() -> RecordingObserver:
    """Observer capturing every event."""
    return RecordingObserver()


@pytest.fixture
def fake_cache() -> FakeCache:
    return FakeCache()


@pytest.fixture
def sample_item() -> SourceItem:
    return SourceItem(
        uri=TRACK_URI,
        id="4cOdK2wGLETKBW3PvgPWqT",
        name="Never Gonna Give You Up",
        artists=["Rick Astley"],
        duration_ms=213573,
    )


@pytest.fixture
def sample_track() -> LoadedTrack:
    return make_track()


@pytest.fixture
def mock_settings() -> TunebridgeSettings:
    """Create mock settings for testing."""
    return TunebridgeSettings(
        spotify_client_id="test-client-id",
        spotify_client_secret="test-client-secret",
        lavalink_nodes=[
            {"url": LAVALINK_URL, "password": LAVALINK_PASSWORD, "name": "main"},
            {"url": "http://localhost:2334", "password": LAVALINK_PASSWORD, "name": "backup"},
        ],
        redis_url=None,
        default_limit=20,
        debug=True,
        log_level="DEBUG",
    )
