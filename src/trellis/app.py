"""Trellis entry points — one-shot generation and watch mode.

The two public functions (generate, watch) are the primary entry points;
both load configuration the same way and drive a DirectorySynchronizer.
"""

import asyncio
import sys
from pathlib import Path

from trellis.config import TrellisConfig
from trellis.config_loader import load_config
from trellis.observability import EventLog, SyncCollector
from trellis.sync.synchronizer import DirectorySynchronizer, SyncResult


def _create_synchronizer(config: TrellisConfig) -> DirectorySynchronizer:
    return DirectorySynchronizer(config, collector=SyncCollector(EventLog()))


def generate(root: str | Path = ".", **kwargs: object) -> SyncResult:
    """Generate the pages directory once from the route tree.

    Args:
        root: Project root directory.
        **kwargs: Override TrellisConfig fields.

    Returns:
        The result of the reconciliation pass.

    """
    config = load_config(Path(root), **kwargs)
    synchronizer = _create_synchronizer(config)
    result = asyncio.run(synchronizer.reconcile())
    _print_sync_summary(config, result)
    return result


def watch(root: str | Path = ".", **kwargs: object) -> None:
    """Generate the pages directory, then keep it current until interrupted.

    Args:
        root: Project root directory.
        **kwargs: Override TrellisConfig fields.

    """
    from trellis.watch.orchestrator import WatchOrchestrator
    from trellis.watch.watcher import RouteWatcher

    config = load_config(Path(root), **kwargs)
    orchestrator = WatchOrchestrator(config, _create_synchronizer(config))
    watcher = RouteWatcher(config)

    print(
        f"  Watching {config.routes_path} -> {config.pages_path}",
        file=sys.stderr,
    )
    try:
        asyncio.run(orchestrator.run(watcher))
    except KeyboardInterrupt:
        print("\n  Stopped.", file=sys.stderr)


def _print_sync_summary(config: TrellisConfig, result: SyncResult) -> None:
    """Print generation summary to stderr."""
    total = len(result.written) + len(result.unchanged)
    lines = [
        "",
        "─" * 41,
        f"  Generated {total} file{'s' if total != 1 else ''}"
        f" ({len(result.written)} updated)",
    ]
    if result.removed:
        lines.append(
            f"  Removed {len(result.removed)} stale file{'s' if len(result.removed) != 1 else ''}"
        )
    if result.failed:
        lines.append(f"  Failed: {', '.join(result.failed)}")
    lines.append(f"  Output: {config.pages_path}")
    lines.append(f"  Done in {result.duration_ms:.0f}ms")

    print("\n".join(lines), file=sys.stderr)
