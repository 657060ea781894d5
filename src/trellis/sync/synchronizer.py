"""Directory synchronizer — reconcile the pages directory with the route tree.

A full pass runs in two phases:

1. Remove every file under the pages directory that no current source maps
   to (renamed or deleted routes), then prune folders left empty.
2. Generate every route and passthrough page and copy every special file,
   fanned out concurrently and awaited together.

Phase 1 completes before phase 2 starts.  Each entry is isolated: a parse,
generation or write failure is reported and the pass continues.  Writes
skip files whose content is already current, so a pass over an unchanged
tree touches nothing on disk.

Single-file and layout-scoped passes reuse the index of the last full scan.
"""

from __future__ import annotations

import asyncio
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from trellis._errors import ConfigError, RouteConflictError, WriteError
from trellis.analysis.exports import ExportAnalyzer
from trellis.codegen.generator import CodeGenerator
from trellis.observability.collector import SyncCollector
from trellis.tree.layouts import resolve_layout_chain, routes_using_layout
from trellis.tree.paths import RouteTreeEntry

if TYPE_CHECKING:
    from collections.abc import Iterable

    from trellis._types import RelativePath, TargetPath
    from trellis.config import TrellisConfig


@dataclass(frozen=True, slots=True)
class RouteIndex:
    """Snapshot of the route tree taken by one scan.

    Attributes:
        entries: Every file under the routes directory, sorted by path.
        targets: Relative source path -> target path, for generated entries.
        layouts: Relative paths of every layout file.
        conflicts: Relative source path -> the source that already claimed
            its target.  Conflicting entries are not generated.

    """

    entries: tuple[RouteTreeEntry, ...] = ()
    targets: dict[RelativePath, TargetPath] = field(default_factory=dict)
    layouts: frozenset[RelativePath] = frozenset()
    conflicts: dict[RelativePath, RelativePath] = field(default_factory=dict)

    def entry(self, relative: RelativePath) -> RouteTreeEntry | None:
        for entry in self.entries:
            if entry.relative == relative:
                return entry
        return None

    def chain(self, relative: RelativePath) -> tuple[RelativePath, ...]:
        return resolve_layout_chain(relative, self.layouts)

    @property
    def generated(self) -> list[RouteTreeEntry]:
        """Entries that own a target, in path order."""
        return [entry for entry in self.entries if entry.relative in self.targets]


@dataclass(frozen=True, slots=True)
class SyncResult:
    """Outcome of one reconciliation pass.

    Attributes:
        written: Targets whose content changed.
        unchanged: Targets regenerated with identical content.
        removed: Stale targets deleted.
        failed: Relative paths of entries (or targets) that failed.
        duration_ms: Wall-clock time of the pass.

    """

    written: tuple[TargetPath, ...] = ()
    unchanged: tuple[TargetPath, ...] = ()
    removed: tuple[TargetPath, ...] = ()
    failed: tuple[str, ...] = ()
    duration_ms: float = 0.0


@dataclass(frozen=True, slots=True)
class _Outcome:
    source: RelativePath
    target: TargetPath
    changed: bool = False
    error: Exception | None = None


def write_if_changed(path: Path, content: bytes) -> bool:
    """Write *content* to *path* unless it already holds exactly that.

    Creates intermediate folders.  Returns True if the file was written.

    Raises:
        WriteError: If the file cannot be created or written.

    """
    try:
        if path.is_file() and path.read_bytes() == content:
            return False
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    except OSError as exc:
        msg = f"Cannot write {path}: {exc}"
        raise WriteError(msg) from exc
    return True


class DirectorySynchronizer:
    """Keeps the pages directory consistent with the route tree.

    Args:
        config: Project configuration.
        analyzer: Shared export analyzer; a fresh one is created if omitted.
        collector: Event collector; a fresh one is created if omitted.

    """

    def __init__(
        self,
        config: TrellisConfig,
        analyzer: ExportAnalyzer | None = None,
        collector: SyncCollector | None = None,
    ) -> None:
        self._config = config
        self._analyzer = analyzer if analyzer is not None else ExportAnalyzer()
        self._collector = collector if collector is not None else SyncCollector()
        self._generator = CodeGenerator(config)
        self._index: RouteIndex | None = None

    @property
    def analyzer(self) -> ExportAnalyzer:
        return self._analyzer

    @property
    def collector(self) -> SyncCollector:
        return self._collector

    @property
    def index(self) -> RouteIndex | None:
        """Index from the most recent scan, or None before the first pass."""
        return self._index

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    def scan(self) -> RouteIndex:
        """Enumerate the route tree and compute every entry's target.

        Raises:
            ConfigError: If the routes directory does not exist.

        """
        routes_dir = self._config.routes_path
        if not routes_dir.is_dir():
            msg = f"Routes directory not found: {routes_dir}"
            raise ConfigError(msg)

        entries = sorted(
            (
                RouteTreeEntry.from_path(path, routes_dir)
                for path in routes_dir.rglob("*")
                if path.is_file()
            ),
            key=lambda entry: entry.relative,
        )

        targets: dict[RelativePath, TargetPath] = {}
        claimed: dict[TargetPath, RelativePath] = {}
        conflicts: dict[RelativePath, RelativePath] = {}
        for entry in entries:
            target = entry.target
            if target is None:
                continue
            if target in claimed:
                conflicts[entry.relative] = claimed[target]
                continue
            claimed[target] = entry.relative
            targets[entry.relative] = target

        return RouteIndex(
            entries=tuple(entries),
            targets=targets,
            layouts=frozenset(e.relative for e in entries if e.role == "layout"),
            conflicts=conflicts,
        )

    def relative(self, path: Path) -> RelativePath | None:
        """Path of *path* relative to the routes directory, or None if outside."""
        try:
            return path.relative_to(self._config.routes_path).as_posix()
        except ValueError:
            return None

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    async def reconcile(self, *, trigger_path: str = "") -> SyncResult:
        """Run one full reconciliation pass.

        Raises:
            ConfigError: If the routes directory does not exist.  Nothing
                under the pages directory is touched in that case.

        """
        start = time.perf_counter()
        index = await asyncio.to_thread(self.scan)
        self._index = index

        removed, removal_failures = await self._remove_stale(index)

        for relative, owner in index.conflicts.items():
            self._report(
                relative,
                RouteConflictError(
                    f"maps to {index.targets[owner]}, already generated from {owner}"
                ),
            )

        outcomes = await self._produce_all(index.generated, index)
        return self._finish(
            "full",
            trigger_path,
            outcomes,
            removed=removed,
            extra_failures=[*removal_failures, *index.conflicts],
            start=start,
        )

    async def regenerate(self, path: Path) -> SyncResult:
        """Regenerate the single artifact produced from *path*.

        Uses the last scan's index.  Returns an empty result when *path* has
        no artifact in that index.

        """
        start = time.perf_counter()
        index = await self._current_index()
        relative = self.relative(path)
        if relative is None or relative not in index.targets:
            return SyncResult()
        entry = index.entry(relative)
        if entry is None:
            return SyncResult()
        outcomes = await self._produce_all([entry], index)
        return self._finish("single", relative, outcomes, start=start)

    async def regenerate_layout(self, path: Path) -> SyncResult:
        """Regenerate every route whose layout chain contains *path*."""
        start = time.perf_counter()
        index = await self._current_index()
        relative = self.relative(path)
        if relative is None:
            return SyncResult()
        affected = [
            entry
            for entry in routes_using_layout(relative, index.entries, index.layouts)
            if entry.relative in index.targets
        ]
        outcomes = await self._produce_all(affected, index)
        return self._finish("layout", relative, outcomes, start=start)

    async def _current_index(self) -> RouteIndex:
        if self._index is None:
            self._index = await asyncio.to_thread(self.scan)
        return self._index

    # ------------------------------------------------------------------
    # Phase 1: stale removal
    # ------------------------------------------------------------------

    async def _remove_stale(self, index: RouteIndex) -> tuple[list[TargetPath], list[str]]:
        pages_dir = self._config.pages_path
        if not pages_dir.is_dir():
            return [], []

        expected = set(index.targets.values())
        stale = sorted(
            path.relative_to(pages_dir).as_posix()
            for path in pages_dir.rglob("*")
            if path.is_file() and path.relative_to(pages_dir).as_posix() not in expected
        )

        results = await asyncio.gather(
            *(asyncio.to_thread(self._remove_one, target) for target in stale),
        )
        removed = [target for target, ok in zip(stale, results, strict=True) if ok]
        failed = [target for target, ok in zip(stale, results, strict=True) if not ok]
        await asyncio.to_thread(self._prune_empty_dirs, pages_dir)
        return removed, failed

    def _remove_one(self, target: TargetPath) -> bool:
        path = self._config.pages_path / target
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            self._report(target, WriteError(f"Cannot remove {path}: {exc}"))
            return False
        self._collector.record_remove(target)
        return True

    def _prune_empty_dirs(self, pages_dir: Path) -> None:
        folders = sorted(
            (path for path in pages_dir.rglob("*") if path.is_dir()),
            key=lambda path: len(path.parts),
            reverse=True,
        )
        for folder in folders:
            try:
                folder.rmdir()
            except OSError:
                continue  # not empty

    # ------------------------------------------------------------------
    # Phase 2: generation
    # ------------------------------------------------------------------

    async def _produce_all(
        self, entries: Iterable[RouteTreeEntry], index: RouteIndex,
    ) -> list[_Outcome]:
        return list(
            await asyncio.gather(
                *(asyncio.to_thread(self._produce, entry, index) for entry in entries),
            )
        )

    def _produce(self, entry: RouteTreeEntry, index: RouteIndex) -> _Outcome:
        target = index.targets[entry.relative]
        t0 = time.perf_counter()
        try:
            content = self._render(entry, index)
            changed = write_if_changed(self._config.pages_path / target, content)
        except Exception as exc:  # noqa: BLE001
            self._report(entry.relative, exc)
            return _Outcome(entry.relative, target, error=exc)

        self._collector.record_write(
            entry.relative,
            target,
            changed=changed,
            duration_ms=(time.perf_counter() - t0) * 1000,
        )
        return _Outcome(entry.relative, target, changed=changed)

    def _render(self, entry: RouteTreeEntry, index: RouteIndex) -> bytes:
        if entry.role == "special":
            try:
                return entry.path.read_bytes()
            except OSError as exc:
                msg = f"Cannot copy {entry.path}: {exc}"
                raise WriteError(msg) from exc

        shape = self._analyzer.analyze(entry.path)
        layouts = [
            (layout, self._analyzer.analyze(self._config.routes_path / layout))
            for layout in (index.chain(entry.relative) if entry.role == "route" else ())
        ]
        return self._generator.generate(entry, shape, layouts).encode("utf-8")

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def _report(self, source: str, exc: Exception) -> None:
        print(f"  {type(exc).__name__}: {source}: {exc}", file=sys.stderr)
        self._collector.record_failure(source, exc)

    def _finish(
        self,
        kind: Literal["full", "layout", "single"],
        trigger_path: str,
        outcomes: list[_Outcome],
        *,
        removed: Iterable[TargetPath] = (),
        extra_failures: Iterable[str] = (),
        start: float,
    ) -> SyncResult:
        result = SyncResult(
            written=tuple(o.target for o in outcomes if o.error is None and o.changed),
            unchanged=tuple(o.target for o in outcomes if o.error is None and not o.changed),
            removed=tuple(removed),
            failed=(*extra_failures, *(o.source for o in outcomes if o.error is not None)),
            duration_ms=(time.perf_counter() - start) * 1000,
        )
        self._collector.record_pass(
            kind,
            trigger_path=trigger_path,
            written=len(result.written),
            unchanged=len(result.unchanged),
            removed=len(result.removed),
            failed=len(result.failed),
            duration_ms=result.duration_ms,
        )
        return result
