"""Top-level orchestration: reference in, resolution report out."""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field

from tunebridge.core.exceptions import (
    NoBackendAvailableError,
    ResolutionError,
    UnsupportedTypeError,
)
from tunebridge.core.models import (
    Classification,
    LoadedTrack,
    ResolutionReport,
    ResolvedTrack,
    SourceItem,
)
from tunebridge.core.references import parse_reference
from tunebridge.core.types import ItemStatus, ReferenceType
from tunebridge.observability import Event, LoggingObserver, PipelineObserver

if TYPE_CHECKING:
    from tunebridge.catalog.base import CatalogClient
    from tunebridge.resolution.cache_aside import CacheAsideResolver

logger = logging.getLogger(__name__)

ALL = "all"

Limit = int | Literal["all"] | None


class PipelineConfig(BaseModel):
    """Configuration for the resolution pipeline."""

    default_limit: int = Field(
        default=20,
        gt=0,
        description="Limit used when none, or a non-positive one, is requested",
    )


def normalize_limit(limit: Limit, default: int) -> int | None:
    """
    Turn a requested limit into the one applied.

    Returns:
        A positive limit, or None for unbounded ("all").
    """
    if limit is None:
        return default
    if isinstance(limit, str):
        if limit.strip().lower() == ALL:
            return None
        raise ValueError(f"Limit must be an integer or {ALL!r}, got {limit!r}")
    if limit <= 0:
        return default
    return limit


class CollectionCursor:
    """
    Reads a collection page by page and hands out items in source order.

    Pages are always requested at the catalog's maximum size; items beyond
    what was asked for stay buffered for the next ``take``.
    """

    def __init__(self, catalog: "CatalogClient", collection_id: str) -> None:
        self._catalog = catalog
        self._collection_id = collection_id
        self._buffer: deque[SourceItem] = deque()
        self._offset = 0
        self._exhausted = False
        self.pages_fetched = 0

    @property
    def exhausted(self) -> bool:
        """Whether the catalog has no more items and the buffer is empty."""
        return self._exhausted and not self._buffer

    async def take(self, count: int | None) -> list[SourceItem]:
        """Gather up to ``count`` items, or every remaining item if None."""
        while not self._exhausted and (count is None or len(self._buffer) < count):
            await self._fetch_page()

        n = len(self._buffer) if count is None else min(count, len(self._buffer))
        return [self._buffer.popleft() for _ in range(n)]

    async def _fetch_page(self) -> None:
        page = await self._catalog.get_page(
            self._collection_id,
            offset=self._offset,
            limit=self._catalog.max_page_size,
        )
        self.pages_fetched += 1
        self._buffer.extend(page.items)
        self._offset += len(page.items)

        if not page.has_next or not page.items:
            self._exhausted = True


@dataclass
class _Run:
    """Mutable bookkeeping of one invocation."""

    failed_limit: bool
    completed: list[ResolvedTrack] = field(default_factory=list)
    failed: list[str | None] = field(default_factory=list)

    @property
    def counted(self) -> int:
        """Attempts that count toward the limit."""
        if self.failed_limit:
            return len(self.completed) + len(self.failed)
        return len(self.completed)

    def complete(self, item: SourceItem, result: LoadedTrack) -> None:
        self.completed.append(
            ResolvedTrack(source_uri=item.uri or "", track=result.track, info=result.info)
        )

    def fail(self, item: SourceItem) -> None:
        self.failed.append(item.uri or item.id)


class ResolutionPipeline:
    """
    Resolves a catalog reference into backend results.

    Flow for each invocation:
    1. Validate the reference syntactically
    2. Let the catalog classify it as an item or a collection
    3. For a collection, gather items page by page up to what the limit
       still needs, then resolve them one at a time in source order
    4. Assemble the report with timing for the whole run

    Only an invalid reference, an unsupported classification or an
    unreachable catalog abort a run. Every per-item problem lands in the
    report's ``failed`` list.
    """

    def __init__(
        self,
        catalog: "CatalogClient",
        resolver: "CacheAsideResolver",
        config: PipelineConfig | None = None,
        observer: PipelineObserver | None = None,
    ) -> None:
        self._catalog = catalog
        self._resolver = resolver
        self.config = config or PipelineConfig()
        self._observer = observer or LoggingObserver()

    async def run(
        self,
        reference: str,
        limit: Limit = None,
        failed_limit: bool = True,
    ) -> ResolutionReport:
        """
        Resolve a reference.

        Args:
            reference: Catalog URL or URI of a track or playlist
            limit: Cap on items for collections; None or non-positive uses
                the configured default, "all" removes the cap
            failed_limit: Whether failed items count toward the cap

        Raises:
            InvalidReferenceError: malformed or unknown reference
            UnsupportedTypeError: reference is neither item nor collection
            CatalogUnavailableError: the catalog failed mid-run
        """
        started_at = datetime.now(timezone.utc)
        start = time.monotonic()

        parse_reference(reference)
        reference = reference.strip()
        applied_limit = normalize_limit(limit, self.config.default_limit)

        classification = await self._catalog.classify(reference)
        self._observer.on_debug(
            Event(
                "pipeline.classified",
                {"reference": reference, "type": classification.type, "id": classification.id},
            )
        )

        run = _Run(failed_limit=failed_limit)
        if classification.is_item:
            reference_type = ReferenceType.ITEM
            applied_limit = 1
            await self._attempt(classification.to_source_item(), run)
        elif classification.is_collection:
            reference_type = ReferenceType.COLLECTION
            await self._run_collection(classification, applied_limit, run)
        else:
            raise UnsupportedTypeError(
                f"Unsupported reference type: {classification.type}",
                reference_type=classification.type,
                details={"reference": reference},
            )

        report = ResolutionReport(
            reference=reference,
            type=reference_type,
            name=classification.name,
            completed=run.completed,
            failed=run.failed,
            limit=applied_limit,
            failed_limit=failed_limit,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            elapsed=time.monotonic() - start,
        )

        logger.info(
            f"Resolved {reference}: {report.counts.completed} completed, "
            f"{report.counts.failed} failed in {report.elapsed:.2f}s"
        )
        self._observer.on_debug(
            Event("pipeline.done", {"reference": reference, **report.counts.model_dump()})
        )
        return report

    async def _run_collection(
        self,
        classification: Classification,
        limit: int | None,
        run: _Run,
    ) -> None:
        cursor = CollectionCursor(self._catalog, classification.id)

        while True:
            needed = None if limit is None else limit - run.counted
            if needed is not None and needed <= 0:
                break

            batch = await cursor.take(needed)
            if not batch:
                break

            self._observer.on_debug(
                Event(
                    "pipeline.gathered",
                    {"collection": classification.id, "items": len(batch), "pages": cursor.pages_fetched},
                )
            )

            for item in batch:
                if limit is not None and run.counted >= limit:
                    break
                await self._attempt(item, run)

            if needed is None:
                break

    async def _attempt(self, item: SourceItem, run: _Run) -> ItemStatus:
        """Resolve one item and record the outcome. Never raises per-item errors."""
        if not item.has_identity:
            status = ItemStatus.MISSING_IDENTITY
        else:
            try:
                result = await self._resolver.resolve(item)
            except NoBackendAvailableError as e:
                self._observer.on_error(e, Event("pipeline.no_backend", {"uri": item.uri}))
                status = ItemStatus.NO_BACKEND
            except ResolutionError as e:
                self._observer.on_error(e, Event("pipeline.item_error", {"uri": item.uri}))
                status = ItemStatus.ERROR
            else:
                if result is None:
                    status = ItemStatus.NOT_FOUND
                else:
                    run.complete(item, result)
                    status = ItemStatus.COMPLETED

        if status is not ItemStatus.COMPLETED:
            run.fail(item)

        self._observer.on_debug(Event("pipeline.item", {"uri": item.uri, "status": str(status)}))
        return status
