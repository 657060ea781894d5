"""Event model for reconciliation passes.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass
from typing import Literal, TypeAlias


# ---------------------------------------------------------------------------
# Artifact events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ArtifactWritten:
    """A generated page or special file was produced.

    Attributes:
        source: Source path relative to the routes directory.
        target: Target path relative to the pages directory.
        changed: False if the file already held identical content.
        duration_ms: Time spent analyzing, generating and writing.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    source: str
    target: str
    changed: bool
    duration_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class ArtifactRemoved:
    """A stale generated file was deleted.

    Attributes:
        target: Target path relative to the pages directory.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    target: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class EntryFailed:
    """One entry could not be analyzed, generated, written or removed.

    Attributes:
        source: Relative source (or target, for removals) path.
        error: Error class name (``ParseError``, ``WriteError``, ...).
        message: Error message.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    source: str
    error: str
    message: str
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Pass events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PassCompleted:
    """A reconciliation pass finished.

    Attributes:
        kind: ``full`` pass, ``layout`` scoped pass, or ``single`` file.
        trigger_path: File that triggered the pass (empty for startup).
        written: Artifacts whose content changed.
        unchanged: Artifacts regenerated with identical content.
        removed: Stale artifacts deleted.
        failed: Entries that failed.
        duration_ms: Wall-clock time of the pass.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    kind: Literal["full", "layout", "single"]
    trigger_path: str
    written: int
    unchanged: int
    removed: int
    failed: int
    duration_ms: float
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

SyncEvent: TypeAlias = ArtifactWritten | ArtifactRemoved | EntryFailed | PassCompleted


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
