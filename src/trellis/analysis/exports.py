"""Export shape analyzer — what does a route or layout file export?

Reduces a file's export statements to an ``ExportShape``: whether it has a
default export (a view unit) and whether it exports the data loader
``getServerSideProps``.  Results are memoized per path.

Cache contract:
    - populated on the first ``analyze()`` of a path
    - ``invalidate(path)`` drops one entry; the watcher calls it on every
      modified/added/deleted event for that path
    - entries never expire otherwise

Thread Safety:
    Analysis runs on worker threads during a reconciliation pass.  The cache
    is protected by a ``threading.Lock``; parsing happens outside the lock.

"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

from trellis._errors import ParseError
from trellis.analysis.frontend import parse_exports

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from trellis.analysis.frontend import ExportDeclaration

DATA_LOADER_NAME = "getServerSideProps"


@dataclass(frozen=True, slots=True)
class ExportShape:
    """Static export surface of one source file.

    Attributes:
        has_default_export: The file provides a default export.
        has_named_data_loader: The file exports ``getServerSideProps``.
        named_exports: Value-level named exports in source order.

    """

    has_default_export: bool
    has_named_data_loader: bool
    named_exports: tuple[str, ...] = ()


def shape_from_declarations(declarations: Iterable[ExportDeclaration]) -> ExportShape:
    """Fold export declarations into an ExportShape."""
    has_default = False
    names: list[str] = []
    for declaration in declarations:
        has_default = has_default or declaration.is_default
        for name in declaration.names:
            if name not in names:
                names.append(name)
    return ExportShape(
        has_default_export=has_default,
        has_named_data_loader=DATA_LOADER_NAME in names,
        named_exports=tuple(names),
    )


class ExportAnalyzer:
    """Memoizing export shape analyzer.

    One analyzer is shared by every pass of a synchronizer, so the cache
    lives as long as the watch session.

    """

    __slots__ = ("_cache", "_lock")

    def __init__(self) -> None:
        self._cache: dict[Path, ExportShape] = {}
        self._lock = threading.Lock()

    def analyze(self, path: Path) -> ExportShape:
        """Return the ExportShape of *path*, parsing it on a cache miss.

        Raises:
            ParseError: If the file cannot be read or contains syntax errors.

        """
        with self._lock:
            cached = self._cache.get(path)
        if cached is not None:
            return cached

        try:
            source = path.read_bytes()
        except OSError as exc:
            msg = f"Cannot read {path}: {exc}"
            raise ParseError(msg, path) from exc

        try:
            declarations = parse_exports(source, path.suffix)
        except ParseError as exc:
            raise ParseError(str(exc), path) from exc

        shape = shape_from_declarations(declarations)
        with self._lock:
            self._cache[path] = shape
        return shape

    def cached(self, path: Path) -> ExportShape | None:
        """Return the cached shape for *path* without parsing."""
        with self._lock:
            return self._cache.get(path)

    def invalidate(self, path: Path) -> bool:
        """Drop the cache entry for *path*. Returns True if one existed."""
        with self._lock:
            return self._cache.pop(path, None) is not None

    def clear(self) -> int:
        """Drop every cache entry and return how many there were."""
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
