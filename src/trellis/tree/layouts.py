"""Layout chain resolver.

A route inherits the layout file of every grouping folder on its path::

    (app)/layout.tsx
    (app)/(dashboard)/layout.tsx
    (app)/(dashboard)/settings/page.tsx

resolves ``settings/page.tsx`` to the chain
``("(app)/layout.tsx", "(app)/(dashboard)/layout.tsx")``, outermost first.
Plain folders never contribute layouts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from trellis.tree.paths import LAYOUT_STEM, SOURCE_EXTENSIONS, group_folders

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable

    from trellis._types import RelativePath
    from trellis.tree.paths import RouteTreeEntry


def find_layout(folder: RelativePath, layouts: Collection[RelativePath]) -> RelativePath | None:
    """Return the layout file directly inside *folder*, trying extensions in order."""
    for extension in SOURCE_EXTENSIONS:
        candidate = f"{folder}/{LAYOUT_STEM}{extension}"
        if candidate in layouts:
            return candidate
    return None


def resolve_layout_chain(
    relative: RelativePath,
    layouts: Collection[RelativePath],
) -> tuple[RelativePath, ...]:
    """Return the ordered layout chain for the route at *relative*.

    Args:
        relative: Route file path relative to the routes directory.
        layouts: Relative paths of every existing layout file.

    """
    chain: list[RelativePath] = []
    for folder in group_folders(relative):
        layout = find_layout(folder, layouts)
        if layout is not None:
            chain.append(layout)
    return tuple(chain)


def routes_using_layout(
    layout: RelativePath,
    entries: Iterable[RouteTreeEntry],
    layouts: Collection[RelativePath],
) -> list[RouteTreeEntry]:
    """Return the route entries whose layout chain contains *layout*."""
    return [
        entry
        for entry in entries
        if entry.role == "route" and layout in resolve_layout_chain(entry.relative, layouts)
    ]
