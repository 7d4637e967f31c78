"""Observer interface for debug and error events.

Pipeline, pool, backends and the cache-aside resolver report what they do
through a ``PipelineObserver`` handed to them at construction. The default
``LoggingObserver`` forwards everything to the standard logging module.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger("tunebridge.events")


@dataclass(frozen=True)
class Event:
    """A named observability event with structured data."""

    name: str
    data: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        if not self.data:
            return self.name
        pairs = " ".join(f"{k}={v!r}" for k, v in self.data.items())
        return f"{self.name} {pairs}"


@runtime_checkable
class PipelineObserver(Protocol):
    """Receives debug and error events."""

    def on_debug(self, event: Event) -> None: ...

    def on_error(self, error: BaseException, event: Event) -> None: ...


class LoggingObserver:
    """Observer writing events to a logger."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def on_debug(self, event: Event) -> None:
        self._log.debug(str(event))

    def on_error(self, error: BaseException, event: Event) -> None:
        self._log.warning(f"{event}: {error}")


class NullObserver:
    """Observer that drops everything."""

    def on_debug(self, event: Event) -> None:
        pass

    def on_error(self, error: BaseException, event: Event) -> None:
        pass


class RecordingObserver:
    """Observer that keeps events in memory, for tests and diagnostics."""

    def __init__(self) -> None:
        self.debug_events: list[Event] = []
        self.errors: list[tuple[BaseException, Event]] = []

    def on_debug(self, event: Event) -> None:
        self.debug_events.append(event)

    def on_error(self, error: BaseException, event: Event) -> None:
        self.errors.append((error, event))

    def names(self) -> list[str]:
        """Names of debug events in emission order."""
        return [e.name for e in self.debug_events]

    def error_names(self) -> list[str]:
        """Names of error events in emission order."""
        return [e.name for _, e in self.errors]
