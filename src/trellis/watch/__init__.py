"""Incremental regeneration driven by file system events."""

from trellis.watch.orchestrator import WatchOrchestrator
from trellis.watch.watcher import ChangeEvent, RouteWatcher, to_change_events

__all__ = [
    "ChangeEvent",
    "RouteWatcher",
    "WatchOrchestrator",
    "to_change_events",
]
