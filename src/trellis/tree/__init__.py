"""Route tree model — path mapping and layout chains."""

from trellis.tree.layouts import find_layout, resolve_layout_chain, routes_using_layout
from trellis.tree.paths import (
    RouteTreeEntry,
    classify_role,
    classify_segment,
    group_folders,
    map_target,
)

__all__ = [
    "RouteTreeEntry",
    "classify_role",
    "classify_segment",
    "find_layout",
    "group_folders",
    "map_target",
    "resolve_layout_chain",
    "routes_using_layout",
]
