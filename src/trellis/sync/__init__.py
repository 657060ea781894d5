"""Reconciliation of the pages directory with the route tree."""

from trellis.sync.synchronizer import (
    DirectorySynchronizer,
    RouteIndex,
    SyncResult,
    write_if_changed,
)

__all__ = [
    "DirectorySynchronizer",
    "RouteIndex",
    "SyncResult",
    "write_if_changed",
]
