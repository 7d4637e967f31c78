"""Tunebridge - Convert catalog tracks and playlists through a pool of search backends."""

from tunebridge.backends import Backend, BackendConfig, BackendPool
from tunebridge.client import TunebridgeClient, convert
from tunebridge.core.models import ResolutionReport, SourceItem
from tunebridge.core.types import ReferenceType
from tunebridge.resolution import CacheAsideResolver, PipelineConfig, ResolutionPipeline

__version__ = "0.1.0"
__all__ = [
    # Client
    "TunebridgeClient",
    "convert",
    # Backends
    "Backend",
    "BackendConfig",
    "BackendPool",
    # Resolution
    "CacheAsideResolver",
    "PipelineConfig",
    "ResolutionPipeline",
    # Models
    "ReferenceType",
    "ResolutionReport",
    "SourceItem",
    # Version
    "__version__",
]
