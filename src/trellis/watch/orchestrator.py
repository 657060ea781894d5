"""Watch orchestrator — keeps the pages directory current while files change.

Routes each change event to the cheapest pass that keeps output correct:

- added / deleted file       -> debounced full pass (structure changed)
- modified special file      -> debounced full pass
- modified layout file       -> scoped pass over routes whose chain holds it
- modified route/passthrough -> immediate single-file regeneration
- modified co-located file   -> nothing (no artifact imports it)

Every event first invalidates the analyzer cache entry for its path.

The debounce collapses a burst of events into one full pass.  A full pass is
never interrupted: if the timer fires while one is running, another pass is
queued to run right after it.  Immediate passes wait for any running pass,
so two passes never write the same target at once.
"""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING, Literal

from trellis.sync.synchronizer import DirectorySynchronizer, SyncResult
from trellis.tree.paths import classify_role

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from trellis.config import TrellisConfig
    from trellis.watch.watcher import ChangeEvent, RouteWatcher


class WatchOrchestrator:
    """Drives reconciliation passes from file change events.

    Args:
        config: Project configuration.
        synchronizer: Synchronizer to drive; created from *config* if omitted.
        debounce_ms: Quiet period before a scheduled full pass runs.
            Defaults to ``config.debounce_ms``.

    """

    def __init__(
        self,
        config: TrellisConfig,
        synchronizer: DirectorySynchronizer | None = None,
        *,
        debounce_ms: int | None = None,
    ) -> None:
        self._config = config
        self._sync = synchronizer if synchronizer is not None else DirectorySynchronizer(config)
        self._delay = (config.debounce_ms if debounce_ms is None else debounce_ms) / 1000.0
        self._active = 0
        self._pass_lock = asyncio.Lock()
        self._timer: asyncio.TimerHandle | None = None
        self._full_task: asyncio.Task[None] | None = None
        self._rerun = False
        self._trigger = ""

    @property
    def synchronizer(self) -> DirectorySynchronizer:
        return self._sync

    @property
    def state(self) -> Literal["idle", "regenerating"]:
        return "regenerating" if self._active else "idle"

    @property
    def full_pass_scheduled(self) -> bool:
        return self._timer is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> SyncResult:
        """Run the startup full pass."""
        return await self._run(self._sync.reconcile)

    async def run(self, watcher: RouteWatcher) -> None:
        """Start *watcher*, run the startup pass, then handle events until cancelled."""
        watcher.start()
        try:
            await self.start()
            async for event in watcher.changes():
                try:
                    await self.handle(event)
                except Exception as exc:  # noqa: BLE001
                    print(f"  Watch error: {event.path}: {exc}", file=sys.stderr)
        finally:
            watcher.stop()
            self.cancel_scheduled()

    async def drain(self) -> None:
        """Wait until no full pass is scheduled or running."""
        while self._timer is not None or (
            self._full_task is not None and not self._full_task.done()
        ):
            if self._full_task is not None and not self._full_task.done():
                await self._full_task
            else:
                await asyncio.sleep(self._delay / 2 or 0.001)

    def cancel_scheduled(self) -> None:
        """Drop a scheduled (not yet running) full pass."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def handle(self, event: ChangeEvent) -> SyncResult | None:
        """React to one change event.

        Returns the result of an immediate pass, or None when the event was
        ignored or deferred to a debounced full pass.

        """
        relative = self._sync.relative(event.path)
        if relative is None:
            return None

        self._sync.analyzer.invalidate(event.path)

        if event.kind != "modified":
            self.schedule_full_pass(relative)
            return None

        role = classify_role(relative)
        if role == "special":
            self.schedule_full_pass(relative)
            return None

        index = self._sync.index
        if role == "layout":
            if index is None or relative not in index.layouts:
                self.schedule_full_pass(relative)
                return None
            return await self._run(lambda: self._sync.regenerate_layout(event.path))

        if role in ("route", "passthrough"):
            if index is None or relative not in index.targets:
                self.schedule_full_pass(relative)
                return None
            return await self._run(lambda: self._sync.regenerate(event.path))

        return None

    def schedule_full_pass(self, trigger_path: str = "") -> None:
        """Schedule a full pass after the debounce window, restarting the window."""
        self.cancel_scheduled()
        self._trigger = trigger_path
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._delay, self._fire)

    def _fire(self) -> None:
        self._timer = None
        if self._full_task is not None and not self._full_task.done():
            self._rerun = True
            return
        self._full_task = asyncio.get_running_loop().create_task(self._full_passes())

    async def _full_passes(self) -> None:
        while True:
            self._rerun = False
            try:
                await self._run(lambda: self._sync.reconcile(trigger_path=self._trigger))
            except Exception as exc:  # noqa: BLE001
                print(f"  Pass error: {exc}", file=sys.stderr)
            if not self._rerun:
                return

    async def _run(self, work: Callable[[], Awaitable[SyncResult]]) -> SyncResult:
        # One pass at a time; concurrent passes would race on the same targets.
        self._active += 1
        try:
            async with self._pass_lock:
                return await work()
        finally:
            self._active -= 1
