"""Sync collector — records reconciliation activity into an event log.

The synchronizer reports every write, removal, failure and completed pass
through one collector so that tests and the CLI can inspect what a pass did
without parsing stderr.

Thread Safety:
    The collector delegates to ``EventLog`` which is internally locked.
    Safe to call from the worker threads a pass fans out to.

"""

from __future__ import annotations

from typing import Literal

from trellis.observability.events import (
    ArtifactRemoved,
    ArtifactWritten,
    EntryFailed,
    PassCompleted,
    now_ns,
)
from trellis.observability.log import EventLog


class SyncCollector:
    """Event collector for reconciliation passes.

    Args:
        log: The EventLog to store events in.

    """

    __slots__ = ("_log",)

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    def record_write(
        self,
        source: str,
        target: str,
        *,
        changed: bool,
        duration_ms: float = 0.0,
    ) -> None:
        self._log.append(
            ArtifactWritten(
                source=source,
                target=target,
                changed=changed,
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

    def record_remove(self, target: str) -> None:
        self._log.append(ArtifactRemoved(target=target, timestamp_ns=now_ns()))

    def record_failure(self, source: str, exc: BaseException) -> None:
        self._log.append(
            EntryFailed(
                source=source,
                error=type(exc).__name__,
                message=str(exc),
                timestamp_ns=now_ns(),
            )
        )

    def record_pass(
        self,
        kind: Literal["full", "layout", "single"],
        *,
        trigger_path: str = "",
        written: int = 0,
        unchanged: int = 0,
        removed: int = 0,
        failed: int = 0,
        duration_ms: float = 0.0,
    ) -> None:
        """Record a completed reconciliation pass."""
        self._log.append(
            PassCompleted(
                kind=kind,
                trigger_path=trigger_path,
                written=written,
                unchanged=unchanged,
                removed=removed,
                failed=failed,
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )
