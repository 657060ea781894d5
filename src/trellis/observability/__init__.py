"""Observability — structured record of what each reconciliation pass did.

Quick Start:
    >>> from trellis.observability import EventLog, SyncCollector
    >>> log = EventLog()
    >>> collector = SyncCollector(log)
    >>> # Pass collector to DirectorySynchronizer(config, collector=collector)

"""

from trellis.observability.collector import SyncCollector
from trellis.observability.events import (
    ArtifactRemoved,
    ArtifactWritten,
    EntryFailed,
    PassCompleted,
    SyncEvent,
    now_ns,
)
from trellis.observability.log import EventLog

__all__ = [
    "ArtifactRemoved",
    "ArtifactWritten",
    "EntryFailed",
    "EventLog",
    "PassCompleted",
    "SyncCollector",
    "SyncEvent",
    "now_ns",
]
