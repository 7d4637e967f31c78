"""Main library client for standalone usage."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from tunebridge.backends.pool import BackendPool
from tunebridge.config import TunebridgeSettings
from tunebridge.core.models import ResolutionReport
from tunebridge.core.references import ReferenceParser
from tunebridge.observability import LoggingObserver, PipelineObserver
from tunebridge.resolution.cache_aside import CacheAsideResolver
from tunebridge.resolution.pipeline import Limit, PipelineConfig, ResolutionPipeline

if TYPE_CHECKING:
    from tunebridge.cache.client import AsyncRedisClient, CacheStore
    from tunebridge.catalog.base import CatalogClient

logger = logging.getLogger(__name__)


class TunebridgeClient:
    """
    Main client for the tunebridge library.

    Converts catalog tracks and playlists into backend search results
    without requiring the web server.

    Usage:
        async with TunebridgeClient() as client:
            # A single track
            report = await client.convert("https://open.spotify.com/track/...")

            # The first 50 playable tracks of a playlist
            report = await client.convert(
                "spotify:playlist:...", limit=50, failed_limit=False
            )

    Settings are loaded from environment variables or can be passed explicitly.
    Catalog, pool and cache can be injected; anything not given is built
    from settings on entry. Pool and catalog are closed with the client.
    """

    def __init__(
        self,
        settings: TunebridgeSettings | None = None,
        *,
        catalog: "CatalogClient | None" = None,
        pool: BackendPool | None = None,
        cache: "CacheStore | None" = None,
        use_cache: bool = True,
        observer: PipelineObserver | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            settings: Application settings. If not provided, loaded from environment.
            catalog: Catalog client to read from instead of the Spotify API.
            pool: Backend pool to use instead of the configured nodes.
            cache: Cache store to use instead of Redis.
            use_cache: Whether to use Redis caching if no cache is given.
            observer: Receiver of debug and error events.
        """
        self._settings = settings or TunebridgeSettings()
        self._catalog = catalog
        self._pool = pool
        self._cache = cache
        self._use_cache = use_cache
        self._observer = observer or LoggingObserver()
        self._owned_redis: AsyncRedisClient | None = None
        self._pipeline: ResolutionPipeline | None = None
        self._resolver: CacheAsideResolver | None = None
        self._parser = ReferenceParser()

    async def __aenter__(self) -> TunebridgeClient:
        """Initialize resources on context entry."""
        await self._initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Clean up resources on context exit."""
        await self.close()

    @property
    def pool(self) -> BackendPool | None:
        return self._pool

    @property
    def resolver(self) -> CacheAsideResolver | None:
        return self._resolver

    @property
    def cache(self) -> "CacheStore | None":
        return self._cache

    @property
    def is_initialized(self) -> bool:
        return self._pipeline is not None

    async def _initialize(self) -> None:
        """Initialize client resources."""
        if self._pool is None:
            self._pool = BackendPool.from_settings(self._settings, observer=self._observer)
            logger.info(f"Backend pool initialized with {len(self._pool)} node(s)")

        if self._catalog is None:
            from tunebridge.catalog.spotify import SpotifyCatalogClient

            self._catalog = SpotifyCatalogClient.from_settings(self._settings)

        if self._cache is None and self._use_cache and self._settings.redis_url:
            try:
                from tunebridge.cache.client import AsyncRedisClient

                redis_client = AsyncRedisClient(
                    str(self._settings.redis_url),
                    default_ttl=self._settings.cache_ttl,
                )
                await redis_client.connect()
                self._owned_redis = redis_client
                self._cache = redis_client
                logger.info("Redis cache initialized")
            except Exception as e:
                logger.warning(f"Failed to initialize cache: {e}")
                self._cache = None

        self._resolver = CacheAsideResolver(
            self._pool,
            self._cache,
            ttl=self._settings.cache_ttl,
            search_prefix=self._settings.search_prefix,
            observer=self._observer,
        )
        self._pipeline = ResolutionPipeline(
            self._catalog,
            self._resolver,
            PipelineConfig(default_limit=self._settings.default_limit),
            observer=self._observer,
        )

    async def close(self) -> None:
        """Close all resources."""
        if self._pool:
            await self._pool.close()

        if self._catalog:
            await self._catalog.close()

        if self._owned_redis:
            await self._owned_redis.close()
            self._owned_redis = None
            self._cache = None

        self._pipeline = None
        self._resolver = None

    def _ensure_initialized(self) -> ResolutionPipeline:
        """Ensure client is initialized."""
        if self._pipeline is None:
            raise RuntimeError(
                "Client not initialized. Use 'async with TunebridgeClient() as client:'"
            )
        return self._pipeline

    def validate_reference(self, reference: object) -> bool:
        """Whether ``reference`` is a well-formed catalog URL or URI."""
        return self._parser.is_valid(reference)

    async def convert(
        self,
        reference: str,
        limit: Limit = None,
        failed_limit: bool = True,
    ) -> ResolutionReport:
        """
        Convert a track or playlist.

        Args:
            reference: Catalog URL or URI
            limit: Cap for playlists (None/non-positive → default, "all" → no cap)
            failed_limit: Whether failed tracks count toward the cap

        Returns:
            The resolution report

        Raises:
            TimeoutError: if ``pipeline_timeout`` is configured and exceeded
        """
        pipeline = self._ensure_initialized()

        if self._settings.pipeline_timeout is None:
            return await pipeline.run(reference, limit, failed_limit)

        async with asyncio.timeout(self._settings.pipeline_timeout):
            return await pipeline.run(reference, limit, failed_limit)


# Convenience function for one-off conversions
async def convert(
    reference: str,
    limit: Limit = None,
    failed_limit: bool = True,
    *,
    settings: TunebridgeSettings | None = None,
) -> ResolutionReport:
    """
    Convert a track or playlist (convenience function).

    For multiple conversions, use TunebridgeClient so the pool and cache
    are shared.
    """
    async with TunebridgeClient(settings) as client:
        return await client.convert(reference, limit, failed_limit)
