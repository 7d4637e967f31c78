"""Resolution layer: cache-aside lookups and the pipeline driving them."""

from tunebridge.resolution.cache_aside import (
    CacheAsideResolver,
    CacheStats,
    build_query_text,
)
from tunebridge.resolution.pipeline import (
    ALL,
    CollectionCursor,
    PipelineConfig,
    ResolutionPipeline,
    normalize_limit,
)

__all__ = [
    # Cache-aside
    "CacheAsideResolver",
    "CacheStats",
    "build_query_text",
    # Pipeline
    "ALL",
    "CollectionCursor",
    "PipelineConfig",
    "ResolutionPipeline",
    "normalize_limit",
]
