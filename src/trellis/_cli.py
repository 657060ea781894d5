"""Trellis CLI — trellis generate / trellis watch.

Entry point for the ``trellis`` command-line interface.
"""

from __future__ import annotations

import argparse
import sys


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("root", nargs="?", default=".", help="Project root directory")
    parser.add_argument(
        "--routes-dir", default=None, help="Route tree directory (default: routes)",
    )
    parser.add_argument(
        "--pages-dir", default=None, help="Generated pages directory (default: pages)",
    )
    parser.add_argument(
        "--import-prefix",
        default=None,
        help="Module prefix for route imports (default: relative imports)",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the trellis CLI."""
    parser = argparse.ArgumentParser(
        prog="trellis",
        description="Compile a nested route tree into a flat pages directory.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate the pages directory once",
    )
    _add_common_arguments(generate_parser)

    watch_parser = subparsers.add_parser(
        "watch",
        help="Generate, then regenerate on every change",
    )
    _add_common_arguments(watch_parser)
    watch_parser.add_argument(
        "--debounce-ms", type=int, default=None, help="Debounce window for full passes",
    )

    return parser


def _get_version() -> str:
    """Get the package version."""
    from trellis import __version__

    return __version__


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from trellis._errors import TrellisError
    from trellis.app import generate, watch

    overrides: dict[str, object] = {
        "routes_dir": args.routes_dir,
        "pages_dir": args.pages_dir,
        "import_prefix": args.import_prefix,
    }
    try:
        if args.command == "generate":
            result = generate(root=args.root, **overrides)
            if result.failed:
                sys.exit(1)
        elif args.command == "watch":
            watch(root=args.root, debounce_ms=args.debounce_ms, **overrides)
    except TrellisError as exc:
        print(f"trellis: {exc}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
