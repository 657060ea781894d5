"""Path mapper — classify route tree files and compute their flat targets.

The route tree uses nested folders; the host router only understands one
file per route.  Mapping is purely lexical::

    page.tsx                       -> index.tsx
    blog/page.tsx                  -> blog.tsx
    blog/[slug]/page.tsx           -> blog/[slug].tsx
    (marketing)/about/page.tsx     -> about.tsx       (group elided)
    (app)/(auth)/page.tsx          -> index.tsx
    api/users/[id].ts              -> api/users/[id].ts  (passthrough)
    _app.tsx                       -> _app.tsx        (special, copied)

A segment wrapped in parentheses is a *grouping folder*: it contributes to
layout resolution but never to the output path.  Classification never looks
at file contents or filesystem metadata.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from trellis._types import RelativePath, RouteRole, SegmentKind, TargetPath

ROUTE_STEM = "page"
LAYOUT_STEM = "layout"
PASSTHROUGH_ROOT = "api"
OUTPUT_EXTENSION = ".tsx"
INDEX_TARGET = "index" + OUTPUT_EXTENSION

# Ordered: the first existing candidate wins during layout lookup.
SOURCE_EXTENSIONS: tuple[str, ...] = (".tsx", ".ts", ".jsx", ".js")

SPECIAL_FILES: frozenset[str] = frozenset({"_app.tsx", "_document.tsx"})

_GROUP_OPEN = "("
_GROUP_CLOSE = ")"


def classify_segment(segment: str) -> SegmentKind:
    """Return ``"group"`` for ``(name)`` segments, ``"plain"`` otherwise.

    An unterminated delimiter (``(admin``) or an empty group (``()``) is
    treated as plain.

    """
    if (
        len(segment) > 2
        and segment.startswith(_GROUP_OPEN)
        and segment.endswith(_GROUP_CLOSE)
    ):
        return "group"
    return "plain"


def split_segments(relative: RelativePath) -> tuple[str, ...]:
    """Split a relative path into POSIX segments."""
    return PurePosixPath(relative).parts


def classify_role(relative: RelativePath) -> RouteRole:
    """Classify a source file by its position and terminal name."""
    segments = split_segments(relative)
    if not segments:
        return "other"

    terminal = PurePosixPath(segments[-1])
    is_source = terminal.suffix in SOURCE_EXTENSIONS

    if len(segments) > 1 and segments[0] == PASSTHROUGH_ROOT:
        return "passthrough" if is_source else "other"
    if len(segments) == 1 and segments[0] in SPECIAL_FILES:
        return "special"
    if not is_source:
        return "other"
    if terminal.stem == ROUTE_STEM:
        return "route"
    if terminal.stem == LAYOUT_STEM:
        return "layout"
    return "other"


def map_target(relative: RelativePath) -> TargetPath | None:
    """Return the generated target path for *relative*, or None.

    Only ``route``, ``passthrough`` and ``special`` files have targets.

    """
    role = classify_role(relative)
    if role in ("passthrough", "special"):
        return str(PurePosixPath(relative))
    if role != "route":
        return None

    kept = [
        segment
        for segment in split_segments(relative)[:-1]
        if classify_segment(segment) == "plain"
    ]
    if not kept:
        return INDEX_TARGET
    kept[-1] += OUTPUT_EXTENSION
    return "/".join(kept)


def group_folders(relative: RelativePath) -> tuple[RelativePath, ...]:
    """Folder paths up to and including each grouping segment, outermost first.

    ``blog/(posts)/(featured)/x/page.tsx`` yields
    ``("blog/(posts)", "blog/(posts)/(featured)")``.

    """
    segments = split_segments(relative)[:-1]
    folders: list[str] = []
    for index, segment in enumerate(segments):
        if classify_segment(segment) == "group":
            folders.append("/".join(segments[: index + 1]))
    return tuple(folders)


@dataclass(frozen=True, slots=True)
class RouteTreeEntry:
    """One source file under the route tree root.

    Attributes:
        path: Absolute filesystem path.
        relative: POSIX path relative to the routes directory.
        segments: Path segments of ``relative``.

    """

    path: Path
    relative: RelativePath
    segments: tuple[str, ...]

    @classmethod
    def from_path(cls, path: Path, routes_dir: Path) -> RouteTreeEntry:
        """Build an entry for *path*, which must live under *routes_dir*."""
        rel = path.relative_to(routes_dir).as_posix()
        return cls(path=path, relative=rel, segments=split_segments(rel))

    @property
    def role(self) -> RouteRole:
        return classify_role(self.relative)

    @property
    def target(self) -> TargetPath | None:
        return map_target(self.relative)

    @property
    def group_folders(self) -> tuple[RelativePath, ...]:
        return group_folders(self.relative)
