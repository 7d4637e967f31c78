"""Pool of interchangeable backends with load-aware selection."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from tunebridge.backends.node import Backend, BackendConfig, BackendStatus
from tunebridge.core.exceptions import ConfigurationError, NoBackendAvailableError
from tunebridge.observability import Event, LoggingObserver, PipelineObserver

if TYPE_CHECKING:
    from tunebridge.config import TunebridgeSettings

logger = logging.getLogger(__name__)


class BackendPool:
    """
    Owns a set of backends keyed by name and picks one per lookup.

    Selection is greedy: among the backends that are not excluded, the one
    with the lowest in-flight load wins, ties going to the earliest
    registered. Load is advisory; nothing is reserved ahead of dispatch.
    """

    def __init__(
        self,
        backends: Iterable[BackendConfig | Mapping[str, Any]] = (),
        observer: PipelineObserver | None = None,
    ) -> None:
        self._observer = observer or LoggingObserver()
        self._backends: dict[str, Backend] = {}
        # Replaced or removed backends whose HTTP client is still open
        self._retired: list[Backend] = []

        for spec in backends:
            self.add_backend(spec)

    def __len__(self) -> int:
        return len(self._backends)

    def __contains__(self, name: object) -> bool:
        return name in self._backends

    def __repr__(self) -> str:
        return f"BackendPool(backends={list(self._backends)}, load={self.total_load})"

    @property
    def backends(self) -> list[Backend]:
        """Members in registration order."""
        return list(self._backends.values())

    @property
    def total_load(self) -> int:
        """Sum of in-flight queries across all members."""
        return sum(b.load for b in self._backends.values())

    def get(self, name: str) -> Backend | None:
        return self._backends.get(name)

    def add_backend(self, spec: BackendConfig | Mapping[str, Any]) -> Backend:
        """
        Register a backend.

        A backend whose name is already registered replaces the existing
        entry and keeps its position in the selection order.

        Raises:
            ConfigurationError: if the spec is invalid or lacks url/password.
        """
        if isinstance(spec, BackendConfig):
            config = spec
        else:
            try:
                config = BackendConfig.model_validate(dict(spec))
            except ValidationError as e:
                raise ConfigurationError(
                    f"Invalid backend configuration: {e}",
                    details={"spec": {k: v for k, v in spec.items() if k != "password"}},
                ) from e

        backend = Backend(config, observer=self._observer)

        if (previous := self._backends.get(backend.name)) is not None:
            logger.warning(f"Replacing backend {backend.name}")
            self._retire(previous)

        self._backends[backend.name] = backend
        self._observer.on_debug(
            Event("pool.backend_added", {"backend": backend.name, "url": str(backend.url)})
        )
        return backend

    async def remove_backend(self, name: str) -> bool:
        """
        Remove a backend by name, returning whether it was registered.

        The removed backend's HTTP client is closed once it has no queries
        in flight, along with any earlier retired backend that is now idle.
        """
        if not name:
            raise ValueError("No backend name given")

        backend = self._backends.pop(name, None)
        if backend is None:
            return False

        self._retire(backend)
        self._observer.on_debug(Event("pool.backend_removed", {"backend": name}))
        await self.close_retired()
        return True

    def _retire(self, backend: Backend) -> None:
        if backend.load or backend.has_client:
            self._retired.append(backend)

    async def close_retired(self) -> int:
        """Close replaced or removed backends that are idle. Returns how many."""
        idle = [b for b in self._retired if not b.load]
        self._retired = [b for b in self._retired if b.load]
        for backend in idle:
            await backend.close()
        return len(idle)

    def select_backend(self) -> Backend:
        """
        Pick the least-loaded backend that is not excluded.

        Raises:
            NoBackendAvailableError: if the pool is empty or every member is
                excluded after a non-transient error.
        """
        if not self._backends:
            raise NoBackendAvailableError("No backends registered")

        best: Backend | None = None
        for backend in self._backends.values():
            if not backend.is_available():
                continue
            if best is None or backend.load < best.load:
                best = backend

        if best is None:
            raise NoBackendAvailableError(
                "Every backend is currently errored",
                details={
                    "backends": {
                        b.name: b.last_error.message if b.last_error else None
                        for b in self._backends.values()
                    }
                },
            )

        self._observer.on_debug(
            Event("pool.backend_selected", {"backend": best.name, "load": best.load})
        )
        return best

    def snapshot(self) -> list[BackendStatus]:
        """Status of every member, in registration order."""
        return [b.status() for b in self._backends.values()]

    @classmethod
    def from_settings(
        cls,
        settings: "TunebridgeSettings",
        observer: PipelineObserver | None = None,
    ) -> "BackendPool":
        """Create a pool from the configured Lavalink nodes."""
        specs = [
            node.model_copy(
                update={
                    "search_prefix": settings.search_prefix,
                    "timeout": settings.backend_timeout,
                    "cooldown": settings.backend_cooldown,
                    "max_cooldown": settings.backend_max_cooldown,
                }
            )
            for node in settings.lavalink_nodes
        ]
        return cls(specs, observer=observer)

    async def close(self) -> None:
        """Close all member and retired backends."""
        for backend in [*self._backends.values(), *self._retired]:
            await backend.close()
        self._retired.clear()

    async def __aenter__(self) -> "BackendPool":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
