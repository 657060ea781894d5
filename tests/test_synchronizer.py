"""Tests for trellis.sync.synchronizer — full and incremental reconciliation."""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import PAGE, PAGE_WITH_LOADER, write_file
from trellis._errors import ConfigError
from trellis.config import TrellisConfig
from trellis.observability.events import ArtifactRemoved, EntryFailed
from trellis.sync.synchronizer import DirectorySynchronizer, write_if_changed

EXPECTED_TARGETS = {
    "_app.tsx",
    "index.tsx",
    "about.tsx",
    "settings.tsx",
    "blog/[slug].tsx",
    "api/health.ts",
}


def _outputs(config: TrellisConfig) -> set[str]:
    pages = config.pages_path
    return {p.relative_to(pages).as_posix() for p in pages.rglob("*") if p.is_file()}


def _mtimes(config: TrellisConfig) -> dict[str, int]:
    pages = config.pages_path
    return {
        p.relative_to(pages).as_posix(): p.stat().st_mtime_ns
        for p in pages.rglob("*")
        if p.is_file()
    }


# ---------------------------------------------------------------------------
# write_if_changed
# ---------------------------------------------------------------------------


class TestWriteIfChanged:
    def test_creates_parents(self, tmp_path: Path) -> None:
        path = tmp_path / "a" / "b" / "c.tsx"
        assert write_if_changed(path, b"x") is True
        assert path.read_bytes() == b"x"

    def test_identical_content_skipped(self, tmp_path: Path) -> None:
        path = tmp_path / "c.tsx"
        write_if_changed(path, b"x")
        before = path.stat().st_mtime_ns
        assert write_if_changed(path, b"x") is False
        assert path.stat().st_mtime_ns == before

    def test_changed_content_written(self, tmp_path: Path) -> None:
        path = tmp_path / "c.tsx"
        write_if_changed(path, b"x")
        assert write_if_changed(path, b"y") is True
        assert path.read_bytes() == b"y"


# ---------------------------------------------------------------------------
# Scanning
# ---------------------------------------------------------------------------


class TestScan:
    def test_index(self, config: TrellisConfig, route_tree: Path) -> None:
        index = DirectorySynchronizer(config).scan()
        assert set(index.targets.values()) == EXPECTED_TARGETS
        assert index.layouts == {
            "(marketing)/layout.tsx",
            "(app)/layout.tsx",
            "(app)/(dashboard)/layout.tsx",
        }
        assert index.conflicts == {}
        assert [e.relative for e in index.entries] == sorted(e.relative for e in index.entries)

    def test_chain(self, config: TrellisConfig, route_tree: Path) -> None:
        index = DirectorySynchronizer(config).scan()
        assert index.chain("(app)/(dashboard)/settings/page.tsx") == (
            "(app)/layout.tsx",
            "(app)/(dashboard)/layout.tsx",
        )

    def test_missing_routes_dir(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Routes directory not found"):
            DirectorySynchronizer(TrellisConfig(root=tmp_path)).scan()

    def test_relative(self, config: TrellisConfig) -> None:
        sync = DirectorySynchronizer(config)
        assert sync.relative(config.routes_path / "a" / "page.tsx") == "a/page.tsx"
        assert sync.relative(config.root / "elsewhere.tsx") is None


# ---------------------------------------------------------------------------
# Full passes
# ---------------------------------------------------------------------------


class TestReconcile:
    """Full reconciliation passes."""

    @pytest.mark.asyncio
    async def test_generates_every_target(self, config: TrellisConfig, route_tree: Path) -> None:
        result = await DirectorySynchronizer(config).reconcile()
        assert set(result.written) == EXPECTED_TARGETS
        assert result.failed == ()
        assert _outputs(config) == EXPECTED_TARGETS

    @pytest.mark.asyncio
    async def test_settings_page_content(self, config: TrellisConfig, route_tree: Path) -> None:
        await DirectorySynchronizer(config).reconcile()
        text = (config.pages_path / "settings.tsx").read_text()
        assert "<AppLayout {...props}>" in text
        assert "\t<AppDashboardLayout {...props}>" in text
        assert "<RouteComponent {...props} />" in text
        assert text.index("await appLayoutGetServerSideProps(context)") < text.index(
            "await routeComponentGetServerSideProps(context)"
        )

    @pytest.mark.asyncio
    async def test_marketing_layout_not_in_app_pages(
        self, config: TrellisConfig, route_tree: Path,
    ) -> None:
        await DirectorySynchronizer(config).reconcile()
        assert "MarketingLayout" in (config.pages_path / "about.tsx").read_text()
        assert "MarketingLayout" not in (config.pages_path / "settings.tsx").read_text()
        assert "Layout" not in (config.pages_path / "index.tsx").read_text()

    @pytest.mark.asyncio
    async def test_passthrough_and_special(self, config: TrellisConfig, route_tree: Path) -> None:
        await DirectorySynchronizer(config).reconcile()
        health = (config.pages_path / "api" / "health.ts").read_text()
        assert "import { handler } from '../../routes/api/health'" in health
        assert health.endswith("export default handler\n")
        assert (config.pages_path / "_app.tsx").read_bytes() == (route_tree / "_app.tsx").read_bytes()

    @pytest.mark.asyncio
    async def test_passthrough_config_before_handler(
        self, config: TrellisConfig, route_tree: Path,
    ) -> None:
        write_file(
            route_tree,
            "api/upload.ts",
            "export const config = { api: { bodyParser: false } }\n\n"
            "export async function handler(req, res) {\n\tres.end()\n}\n",
        )
        await DirectorySynchronizer(config).reconcile()
        upload = (config.pages_path / "api" / "upload.ts").read_text()
        assert "export default handler" in upload
        assert "export { config }" in upload

    @pytest.mark.asyncio
    async def test_second_pass_is_idempotent(self, config: TrellisConfig, route_tree: Path) -> None:
        sync = DirectorySynchronizer(config)
        await sync.reconcile()
        before = _mtimes(config)
        result = await sync.reconcile()
        assert result.written == ()
        assert set(result.unchanged) == EXPECTED_TARGETS
        assert _mtimes(config) == before

    @pytest.mark.asyncio
    async def test_stale_outputs_removed(self, config: TrellisConfig, route_tree: Path) -> None:
        write_file(config.pages_path, "old.tsx", "stale")
        write_file(config.pages_path, "gone/deep/x.tsx", "stale")
        sync = DirectorySynchronizer(config)
        result = await sync.reconcile()
        assert set(result.removed) == {"old.tsx", "gone/deep/x.tsx"}
        assert not (config.pages_path / "gone").exists()
        assert _outputs(config) == EXPECTED_TARGETS
        assert len(sync.collector.log.query(event_type=ArtifactRemoved)) == 2

    @pytest.mark.asyncio
    async def test_renamed_route(self, config: TrellisConfig, route_tree: Path) -> None:
        sync = DirectorySynchronizer(config)
        await sync.reconcile()
        (route_tree / "blog" / "[slug]").rename(route_tree / "blog" / "[id]")
        result = await sync.reconcile()
        assert "blog/[slug].tsx" in result.removed
        assert "blog/[id].tsx" in result.written

    @pytest.mark.asyncio
    async def test_missing_routes_dir_keeps_pages(self, project: Path) -> None:
        config = TrellisConfig(root=project, routes_dir=Path("rotues"))
        write_file(config.pages_path, "about.tsx", "generated")
        sync = DirectorySynchronizer(config)
        with pytest.raises(ConfigError):
            await sync.reconcile()
        assert (config.pages_path / "about.tsx").read_text() == "generated"
        assert sync.collector.log.query(event_type=ArtifactRemoved) == []

    @pytest.mark.asyncio
    async def test_empty_tree_empties_pages(self, config: TrellisConfig) -> None:
        write_file(config.pages_path, "a/b.tsx", "stale")
        result = await DirectorySynchronizer(config).reconcile()
        assert result.removed == ("a/b.tsx",)
        assert _outputs(config) == set()


class TestFailureIsolation:
    """One bad entry never aborts a pass."""

    @pytest.mark.asyncio
    async def test_syntax_error(self, config: TrellisConfig, route_tree: Path) -> None:
        write_file(route_tree, "broken/page.tsx", "export default function (\n")
        sync = DirectorySynchronizer(config)
        result = await sync.reconcile()
        assert result.failed == ("broken/page.tsx",)
        assert set(result.written) == EXPECTED_TARGETS
        assert not (config.pages_path / "broken.tsx").exists()
        (failure,) = sync.collector.log.failures()
        assert failure.source == "broken/page.tsx"
        assert failure.error == "ParseError"

    @pytest.mark.asyncio
    async def test_broken_layout_fails_its_routes(
        self, config: TrellisConfig, route_tree: Path,
    ) -> None:
        write_file(route_tree, "(app)/(dashboard)/layout.tsx", "export default {\n")
        result = await DirectorySynchronizer(config).reconcile()
        assert result.failed == ("(app)/(dashboard)/settings/page.tsx",)
        assert "about.tsx" in result.written

    @pytest.mark.asyncio
    async def test_route_without_exports(self, config: TrellisConfig, route_tree: Path) -> None:
        write_file(route_tree, "empty/page.tsx", "const x = 1\n")
        sync = DirectorySynchronizer(config)
        result = await sync.reconcile()
        assert result.failed == ("empty/page.tsx",)
        (failure,) = sync.collector.log.query(event_type=EntryFailed)
        assert failure.error == "GenerateError"

    @pytest.mark.asyncio
    async def test_failure_reported_on_stderr(
        self, config: TrellisConfig, route_tree: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        write_file(route_tree, "broken/page.tsx", "export default function (\n")
        await DirectorySynchronizer(config).reconcile()
        assert "ParseError: broken/page.tsx" in capsys.readouterr().err


class TestConflicts:
    @pytest.mark.asyncio
    async def test_later_path_loses(self, config: TrellisConfig, route_tree: Path) -> None:
        write_file(route_tree, "(zzz)/about/page.tsx", PAGE_WITH_LOADER)
        sync = DirectorySynchronizer(config)
        result = await sync.reconcile()
        assert sync.index is not None
        assert sync.index.conflicts == {"(zzz)/about/page.tsx": "(marketing)/about/page.tsx"}
        assert "(zzz)/about/page.tsx" in result.failed
        assert "MarketingLayout" in (config.pages_path / "about.tsx").read_text()
        (failure,) = sync.collector.log.query(event_type=EntryFailed)
        assert failure.error == "RouteConflictError"


# ---------------------------------------------------------------------------
# Incremental passes
# ---------------------------------------------------------------------------


class TestRegenerate:
    """Single-file and layout-scoped passes."""

    @pytest.mark.asyncio
    async def test_single_route(self, config: TrellisConfig, route_tree: Path) -> None:
        sync = DirectorySynchronizer(config)
        await sync.reconcile()
        before = _mtimes(config)

        path = route_tree / "blog" / "[slug]" / "page.tsx"
        path.write_text(PAGE_WITH_LOADER)
        sync.analyzer.invalidate(path)
        result = await sync.regenerate(path)

        assert result.written == ("blog/[slug].tsx",)
        assert "getServerSideProps" in (config.pages_path / "blog" / "[slug].tsx").read_text()
        after = _mtimes(config)
        for target in EXPECTED_TARGETS - {"blog/[slug].tsx"}:
            assert after[target] == before[target]

    @pytest.mark.asyncio
    async def test_unchanged_shape_rewrites_nothing(
        self, config: TrellisConfig, route_tree: Path,
    ) -> None:
        sync = DirectorySynchronizer(config)
        await sync.reconcile()
        path = route_tree / "page.tsx"
        path.write_text(PAGE + "\n// edited\n")
        sync.analyzer.invalidate(path)
        result = await sync.regenerate(path)
        assert result.written == ()
        assert result.unchanged == ("index.tsx",)

    @pytest.mark.asyncio
    async def test_unknown_path(self, config: TrellisConfig, route_tree: Path) -> None:
        sync = DirectorySynchronizer(config)
        await sync.reconcile()
        result = await sync.regenerate(route_tree / "blog" / "[slug]" / "Comments.tsx")
        assert result.written == ()
        assert result.unchanged == ()

    @pytest.mark.asyncio
    async def test_layout_scope(self, config: TrellisConfig, route_tree: Path) -> None:
        sync = DirectorySynchronizer(config)
        await sync.reconcile()
        path = route_tree / "(app)" / "(dashboard)" / "layout.tsx"
        path.write_text(PAGE_WITH_LOADER)
        sync.analyzer.invalidate(path)

        result = await sync.regenerate_layout(path)

        assert result.written == ("settings.tsx",)
        assert "appDashboardLayoutGetServerSideProps" in (
            config.pages_path / "settings.tsx"
        ).read_text()
        last_pass = sync.collector.log.last_pass()
        assert last_pass is not None
        assert last_pass.kind == "layout"
        assert last_pass.trigger_path == "(app)/(dashboard)/layout.tsx"

    @pytest.mark.asyncio
    async def test_regenerate_before_first_pass_scans(
        self, config: TrellisConfig, route_tree: Path,
    ) -> None:
        sync = DirectorySynchronizer(config)
        result = await sync.regenerate(route_tree / "page.tsx")
        assert result.written == ("index.tsx",)
        assert sync.index is not None
