"""Unit test fixtures with HTTP mocking."""

from __future__ import annotations

import pytest
import respx

from tests.fakes import LAVALINK_PASSWORD, LAVALINK_URL
from tunebridge.backends import Backend, BackendConfig
from tunebridge.observability import RecordingObserver

# ============================================================================
# HTTP Mocking Fixtures
# ============================================================================


@pytest.fixture
def respx_mock():
    """Provide a respx mock router for HTTP mocking.

    Use this when you need fine-grained control over mocked responses.
    The mock is automatically started and stopped by respx.
    """
    with respx.mock(assert_all_called=False) as router:
        yield router


# ============================================================================
# Backend Fixtures
# ============================================================================


@pytest.fixture
def backend_config() -> BackendConfig:
    """Config for a local node with a short cooldown."""
    return BackendConfig(
        url=LAVALINK_URL,
        password=LAVALINK_PASSWORD,
        name="main",
        timeout=5.0,
        cooldown=30.0,
        max_cooldown=120.0,
    )


@pytest.fixture
async def backend(backend_config: BackendConfig, observer: RecordingObserver):
    """Backend wired to the recording observer."""
    async with Backend(backend_config, observer=observer) as node:
        yield node
