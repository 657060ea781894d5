"""Route watcher — reports file changes under the routes directory.

Runs ``watchfiles`` in a background thread and bridges its batches into an
asyncio queue of ``ChangeEvent`` objects for the orchestrator to consume.
Coalescing is left to the orchestrator's own debounce, so the watchfiles
debounce is kept short.
"""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from watchfiles import Change, watch

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from trellis._types import ChangeKind
    from trellis.config import TrellisConfig


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A file change detected by the watcher.

    Attributes:
        path: Absolute path to the changed file.
        kind: Type of filesystem change.

    """

    path: Path
    kind: ChangeKind


# Mapping from watchfiles Change enum to our kind literals.
_CHANGE_KIND_MAP: dict[Change, ChangeKind] = {
    Change.added: "added",
    Change.modified: "modified",
    Change.deleted: "deleted",
}


def to_change_events(
    raw_changes: set[tuple[Change, str]], routes_dir: Path,
) -> list[ChangeEvent]:
    """Convert one watchfiles batch into ChangeEvents under *routes_dir*, sorted by path."""
    events: list[ChangeEvent] = []
    for change_type, path_str in sorted(raw_changes, key=lambda c: (c[1], c[0].value)):
        path = Path(path_str)
        try:
            path.relative_to(routes_dir)
        except ValueError:
            continue
        events.append(ChangeEvent(path=path, kind=_CHANGE_KIND_MAP.get(change_type, "modified")))
    return events


class RouteWatcher:
    """Watches the routes directory and queues ChangeEvents.

    ``start()`` must be called from a running event loop: watcher-thread
    events are handed to that loop with ``call_soon_threadsafe``.

    Args:
        config: Project configuration.
        debounce_ms: watchfiles debounce for grouping raw notifications.

    """

    def __init__(self, config: TrellisConfig, *, debounce_ms: int = 50) -> None:
        self._config = config
        self._debounce_ms = debounce_ms
        self._queue: asyncio.Queue[ChangeEvent] = asyncio.Queue()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def is_running(self) -> bool:
        """Whether the watcher background thread is active."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start watching for file changes in a background thread."""
        if self.is_running:
            return

        self._loop = asyncio.get_running_loop()
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._watch_loop,
            name="trellis-watcher",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Signal the watcher to stop and wait for the thread to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            self._thread = None

    async def changes(self) -> AsyncIterator[ChangeEvent]:
        """Async iterator that yields ChangeEvent objects as they occur.

        Ends once the watcher is stopped and the queue is drained.

        """
        while self.is_running or not self._queue.empty():
            try:
                event = await asyncio.wait_for(self._queue.get(), timeout=0.5)
                yield event
            except TimeoutError:
                if not self.is_running:
                    break

    def _watch_loop(self) -> None:
        """Background thread: run watchfiles and push events to the queue."""
        routes_dir = self._config.routes_path
        loop = self._loop
        assert loop is not None

        for raw_changes in watch(
            routes_dir,
            stop_event=self._stop_event,
            debounce=self._debounce_ms,
            step=50,
        ):
            for event in to_change_events(raw_changes, routes_dir):
                loop.call_soon_threadsafe(self._queue.put_nowait, event)
