"""Event log — bounded record of reconciliation events.

Keeps the most recent ``SyncEvent`` objects in a ring buffer.  Lookups
filter by event class, start time and path; ``failures()`` and
``last_pass()`` cover what the CLI and tests ask for most.

Thread Safety:
    Passes append from worker threads; every access holds one
    ``threading.Lock``.

"""

import threading
from collections import Counter, deque
from collections.abc import Iterable
from typing import Any

from trellis.observability.events import EntryFailed, PassCompleted, SyncEvent


def _event_path(event: SyncEvent) -> str:
    """The path an event is about: source first, then target, then trigger."""
    for attr in ("source", "target", "trigger_path"):
        value = getattr(event, attr, "")
        if value:
            return value
    return ""


class EventLog:
    """Ring buffer of sync events, oldest dropped first.

    Args:
        max_events: Number of events retained.

    """

    __slots__ = ("_buffer", "_lock", "_max_events")

    def __init__(self, max_events: int = 10_000) -> None:
        self._max_events = max_events
        self._buffer: deque[SyncEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def append(self, event: SyncEvent) -> None:
        with self._lock:
            self._buffer.append(event)

    def append_many(self, events: Iterable[SyncEvent]) -> None:
        with self._lock:
            self._buffer.extend(events)

    def _snapshot(self) -> list[SyncEvent]:
        with self._lock:
            return list(self._buffer)

    def query(
        self,
        *,
        event_type: type | None = None,
        since_ns: int = 0,
        path: str | None = None,
        limit: int = 100,
    ) -> list[SyncEvent]:
        """Return matching events, newest first.

        Args:
            event_type: Keep only instances of this class.
            since_ns: Keep only events stamped at or after this time.
            path: Keep only events whose source, target or trigger path
                contains this substring.
            limit: Maximum number of events returned.

        """
        matched: list[SyncEvent] = []
        for event in reversed(self._snapshot()):
            if len(matched) == limit:
                break
            if event_type is not None and not isinstance(event, event_type):
                continue
            if event.timestamp_ns < since_ns:
                continue
            if path is not None and path not in _event_path(event):
                continue
            matched.append(event)
        return matched

    def failures(self, *, since_ns: int = 0) -> list[EntryFailed]:
        """Failed entries, oldest first."""
        return [
            event
            for event in self._snapshot()
            if isinstance(event, EntryFailed) and event.timestamp_ns >= since_ns
        ]

    def last_pass(self) -> PassCompleted | None:
        """The most recently completed pass, if any."""
        for event in reversed(self._snapshot()):
            if isinstance(event, PassCompleted):
                return event
        return None

    def recent(self, n: int = 20) -> list[SyncEvent]:
        """The *n* newest events, oldest first."""
        return self._snapshot()[-n:]

    def clear(self) -> int:
        """Drop every event; returns how many were dropped."""
        with self._lock:
            dropped = len(self._buffer)
            self._buffer.clear()
        return dropped

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)

    def stats(self) -> dict[str, Any]:
        events = self._snapshot()
        return {
            "total": len(events),
            "max_events": self._max_events,
            "by_type": dict(Counter(type(event).__name__ for event in events)),
        }
