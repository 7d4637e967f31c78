"""Cache-aside lookup of a single catalog item through the backend pool."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import ValidationError

from tunebridge.cache.keys import CacheKeys
from tunebridge.core.exceptions import CacheError
from tunebridge.core.models import LoadedTrack, SourceItem
from tunebridge.observability import Event, LoggingObserver, PipelineObserver

if TYPE_CHECKING:
    from tunebridge.backends.pool import BackendPool
    from tunebridge.cache.client import CacheStore

logger = logging.getLogger(__name__)

# A stored JSON null marks a deliberately empty entry; it reads as a miss.
TOMBSTONE = b"null"


def build_query_text(item: SourceItem) -> str:
    """Search text for an item: its name followed by each artist, space separated."""
    return " ".join([item.name or "", *item.artists])


@dataclass
class CacheStats:
    """Counters for one resolver instance."""

    hits: int = 0
    misses: int = 0
    writes: int = 0
    errors: int = 0


class CacheAsideResolver:
    """
    Resolves items against the backend pool behind a cache.

    A hit is returned without touching the pool. On a miss the least-loaded
    backend is queried and a found track is written back before returning.
    Misses and backend failures are never cached, so the next call retries.
    Cache failures are reported to the observer and treated as misses.
    """

    def __init__(
        self,
        pool: "BackendPool",
        cache: "CacheStore | None" = None,
        *,
        ttl: int | None = None,
        search_prefix: str = "ytsearch",
        observer: PipelineObserver | None = None,
    ) -> None:
        self._pool = pool
        self._cache = cache
        self._ttl = ttl
        self._search_prefix = search_prefix
        self._observer = observer or LoggingObserver()
        self.stats = CacheStats()

    def cache_key(self, item: SourceItem) -> str:
        if not item.uri:
            raise ValueError("Item has no stable identifier")
        return CacheKeys.resolution(item.uri, self._search_prefix)

    async def resolve(self, item: SourceItem) -> LoadedTrack | None:
        """
        Resolve an item to the top backend result.

        Returns:
            The cached or freshly found track, or None if the backend found
            nothing or failed.

        Raises:
            NoBackendAvailableError: if the pool has no eligible backend.
        """
        if not item.has_identity:
            raise ValueError("Item needs both a uri and a name to be resolved")

        key = self.cache_key(item)

        cached = await self._read(key)
        if cached is not None:
            self.stats.hits += 1
            self._observer.on_debug(Event("cache.hit", {"key": key}))
            return cached

        self.stats.misses += 1
        self._observer.on_debug(Event("cache.miss", {"key": key}))

        backend = self._pool.select_backend()
        result = await backend.query(build_query_text(item))

        if result is None:
            return None

        await self._write(key, result)
        return result

    async def invalidate(self, item: SourceItem) -> bool:
        """Drop the cached result of an item."""
        if self._cache is None:
            return False
        key = self.cache_key(item)
        try:
            return await self._cache.delete(key)
        except CacheError as e:
            self._report(e, "cache.delete_failed", key)
            return False

    async def _read(self, key: str) -> LoadedTrack | None:
        if self._cache is None:
            return None

        try:
            raw = await self._cache.get(key)
        except CacheError as e:
            self._report(e, "cache.read_failed", key)
            return None

        if raw is None:
            return None
        if isinstance(raw, str):
            raw = raw.encode()
        if raw.strip() == TOMBSTONE:
            return None

        try:
            return LoadedTrack.model_validate_json(raw)
        except ValidationError as e:
            self._report(
                CacheError(f"Undecodable cache entry: {e}", details={"key": key}),
                "cache.decode_failed",
                key,
            )
            return None

    async def _write(self, key: str, result: LoadedTrack) -> None:
        if self._cache is None:
            return

        payload = result.model_dump_json(by_alias=True).encode()
        try:
            await self._cache.set(key, payload, ttl=self._ttl)
        except CacheError as e:
            self._report(e, "cache.write_failed", key)
            return

        self.stats.writes += 1

    def _report(self, error: CacheError, name: str, key: str) -> None:
        self.stats.errors += 1
        self._observer.on_error(error, Event(name, {"key": key}))
