"""Search backends and the pool that balances between them."""

from tunebridge.backends.node import Backend, BackendConfig, BackendStatus
from tunebridge.backends.pool import BackendPool

__all__ = [
    "Backend",
    "BackendConfig",
    "BackendPool",
    "BackendStatus",
]
