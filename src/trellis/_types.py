"""Shared type definitions for trellis."""

from typing import Literal, TypeAlias

# Classification of a non-terminal path segment
SegmentKind: TypeAlias = Literal["plain", "group"]

# Classification of a source file by its position and name
RouteRole: TypeAlias = Literal["route", "layout", "special", "passthrough", "other"]

# POSIX path relative to the routes directory (e.g. "(app)/blog/page.tsx")
RelativePath: TypeAlias = str

# POSIX path relative to the pages directory (e.g. "blog.tsx")
TargetPath: TypeAlias = str

# Kind of filesystem change reported by the watcher
ChangeKind: TypeAlias = Literal["added", "modified", "deleted"]
