"""Tests for trellis.analysis.exports — ExportShape and the memoizing analyzer."""

from __future__ import annotations

from pathlib import Path

import pytest

from trellis._errors import ParseError
from trellis.analysis.exports import ExportAnalyzer, ExportShape, shape_from_declarations
from trellis.analysis.frontend import ExportDeclaration

from conftest import LAYOUT_WITH_LOADER, PAGE, PAGE_WITH_LOADER, write_file


# ---------------------------------------------------------------------------
# shape_from_declarations
# ---------------------------------------------------------------------------


class TestShapeFromDeclarations:
    def test_empty(self) -> None:
        shape = shape_from_declarations([])
        assert shape == ExportShape(has_default_export=False, has_named_data_loader=False)

    def test_default_and_loader(self) -> None:
        shape = shape_from_declarations([
            ExportDeclaration(is_default=True, names=(), line=1),
            ExportDeclaration(is_default=False, names=("getServerSideProps",), line=5),
        ])
        assert shape.has_default_export
        assert shape.has_named_data_loader
        assert shape.named_exports == ("getServerSideProps",)

    def test_names_deduplicated_in_order(self) -> None:
        shape = shape_from_declarations([
            ExportDeclaration(is_default=False, names=("b", "a"), line=1),
            ExportDeclaration(is_default=False, names=("a", "c"), line=2),
        ])
        assert shape.named_exports == ("b", "a", "c")

    def test_loader_name_is_exact(self) -> None:
        shape = shape_from_declarations([
            ExportDeclaration(is_default=False, names=("getServerSidePropsX",), line=1),
        ])
        assert not shape.has_named_data_loader


# ---------------------------------------------------------------------------
# ExportAnalyzer
# ---------------------------------------------------------------------------


class TestExportAnalyzer:
    """Memoized per-path analysis."""

    def test_page(self, tmp_path: Path) -> None:
        path = write_file(tmp_path, "page.tsx", PAGE)
        shape = ExportAnalyzer().analyze(path)
        assert shape.has_default_export
        assert not shape.has_named_data_loader

    def test_page_with_loader(self, tmp_path: Path) -> None:
        path = write_file(tmp_path, "page.tsx", PAGE_WITH_LOADER)
        shape = ExportAnalyzer().analyze(path)
        assert shape.has_default_export
        assert shape.has_named_data_loader

    def test_arrow_loader(self, tmp_path: Path) -> None:
        path = write_file(tmp_path, "layout.tsx", LAYOUT_WITH_LOADER)
        assert ExportAnalyzer().analyze(path).has_named_data_loader

    def test_cache_hit_skips_reparse(self, tmp_path: Path) -> None:
        path = write_file(tmp_path, "page.tsx", PAGE)
        analyzer = ExportAnalyzer()
        first = analyzer.analyze(path)
        path.write_text(PAGE_WITH_LOADER)
        assert analyzer.analyze(path) is first
        assert len(analyzer) == 1

    def test_invalidate_forces_reparse(self, tmp_path: Path) -> None:
        path = write_file(tmp_path, "page.tsx", PAGE)
        analyzer = ExportAnalyzer()
        analyzer.analyze(path)
        path.write_text(PAGE_WITH_LOADER)
        assert analyzer.invalidate(path) is True
        assert analyzer.cached(path) is None
        assert analyzer.analyze(path).has_named_data_loader

    def test_invalidate_missing(self, tmp_path: Path) -> None:
        assert ExportAnalyzer().invalidate(tmp_path / "nope.tsx") is False

    def test_clear(self, tmp_path: Path) -> None:
        analyzer = ExportAnalyzer()
        analyzer.analyze(write_file(tmp_path, "a/page.tsx", PAGE))
        analyzer.analyze(write_file(tmp_path, "b/page.tsx", PAGE))
        assert analyzer.clear() == 2
        assert len(analyzer) == 0

    def test_missing_file(self, tmp_path: Path) -> None:
        path = tmp_path / "missing.tsx"
        with pytest.raises(ParseError) as info:
            ExportAnalyzer().analyze(path)
        assert info.value.path == path

    def test_syntax_error_carries_path(self, tmp_path: Path) -> None:
        path = write_file(tmp_path, "page.tsx", "export default function (\n")
        analyzer = ExportAnalyzer()
        with pytest.raises(ParseError) as info:
            analyzer.analyze(path)
        assert info.value.path == path
        assert analyzer.cached(path) is None
