"""Code generator — route facts in, page module out.

Given a route entry, its ExportShape and its layout chain (each layout with
its own shape), builds a ``ModuleIR`` and renders it.  A generated page for
``(app)/dashboard/page.tsx`` under an ``(app)/layout.tsx`` that exports a
data loader looks like::

    // Generated by trellis from (app)/dashboard/page.tsx. Do not edit.

    import React from 'react'
    import { deepmerge } from 'deepmerge-ts'
    import AppLayout, { getServerSideProps as appLayoutGetServerSideProps } from '../routes/(app)/layout'
    import RouteComponent from '../routes/(app)/dashboard/page'

    async function combinedGetServerSideProps(context: any) { ... }

    export const getServerSideProps = combinedGetServerSideProps

    function Page(props: any) { ... }

    export default Page
"""

from __future__ import annotations

import os
import re
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from trellis._errors import GenerateError
from trellis.analysis.exports import DATA_LOADER_NAME
from trellis.codegen.ir import (
    COMBINED_LOADER,
    MERGE_FUNCTION,
    PAGE_COMPONENT,
    ImportDecl,
    LoaderIR,
    ModuleIR,
    ViewNode,
    render_module,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from trellis._types import RelativePath, TargetPath
    from trellis.analysis.exports import ExportShape
    from trellis.config import TrellisConfig, WrapperFunction
    from trellis.tree.paths import RouteTreeEntry

REACT_MODULE = "react"
MERGE_MODULE = "deepmerge-ts"
ROUTE_COMPONENT = "RouteComponent"

# Named exports the host router reads as route options, never as the handler.
PASSTHROUGH_OPTION_EXPORTS: frozenset[str] = frozenset({"config"})

_RESERVED_NAMES: frozenset[str] = frozenset({
    "React",
    ROUTE_COMPONENT,
    PAGE_COMPONENT,
    COMBINED_LOADER,
    MERGE_FUNCTION,
    DATA_LOADER_NAME,
    "props",
    "context",
    "merged",
})

_WORD = re.compile(r"[A-Za-z0-9]+")


class _NameRegistry:
    """Hands out identifiers unique within one generated module."""

    def __init__(self, reserved: frozenset[str]) -> None:
        self._taken = set(reserved)

    def register(self, name: str) -> str:
        candidate = name
        suffix = 2
        while candidate in self._taken:
            candidate = f"{name}{suffix}"
            suffix += 1
        self._taken.add(candidate)
        return candidate


def layout_identifier(layout: RelativePath) -> str:
    """PascalCase component name for a layout: ``blog/(posts)/layout.tsx`` -> ``BlogPostsLayout``."""
    folder = PurePosixPath(layout).parent.as_posix()
    words = _WORD.findall(folder)
    name = "".join(word[:1].upper() + word[1:] for word in words) + "Layout"
    if name[0].isdigit():
        name = "_" + name
    return name


def _loader_identifier(component: str) -> str:
    return component[:1].lower() + component[1:] + DATA_LOADER_NAME[:1].upper() + DATA_LOADER_NAME[1:]


def _strip_extension(relative: RelativePath) -> str:
    return PurePosixPath(relative).with_suffix("").as_posix()


class CodeGenerator:
    """Builds generated page modules from route facts.

    Args:
        config: Project configuration (wrappers, import prefix, directories).

    """

    def __init__(self, config: TrellisConfig) -> None:
        self._config = config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate(
        self,
        entry: RouteTreeEntry,
        shape: ExportShape,
        layouts: Sequence[tuple[RelativePath, ExportShape]] = (),
    ) -> str:
        """Return the generated text for a route or passthrough entry.

        Raises:
            GenerateError: If the entry has no artifact or cannot be wired.

        """
        if entry.role == "passthrough":
            return self.render(self.build_passthrough(entry, shape))
        if entry.role == "route":
            return self.render(self.build_page(entry, shape, layouts))
        msg = f"{entry.relative} is a {entry.role} file and has no generated page"
        raise GenerateError(msg)

    def build_passthrough(self, entry: RouteTreeEntry, shape: ExportShape) -> ModuleIR:
        """Re-export a passthrough module's handler as the default export.

        The handler is the module's default export, or else its first named
        export that is not a route option such as ``config``.  Route options
        are re-exported under their own names.

        """
        source = self.import_specifier(entry.relative, self._target(entry))
        options = tuple(n for n in shape.named_exports if n in PASSTHROUGH_OPTION_EXPORTS)
        handlers = [n for n in shape.named_exports if n not in PASSTHROUGH_OPTION_EXPORTS]
        default: str | None = None
        named: tuple[tuple[str, str], ...] = ()
        if shape.has_default_export:
            default = exported = ROUTE_COMPONENT
        elif handlers:
            exported = handlers[0]
            named = ((exported, exported),)
        else:
            msg = f"{entry.relative} has neither a default export nor a named handler"
            raise GenerateError(msg)
        decl = ImportDecl(
            source=source,
            default=default,
            named=named + tuple((option, option) for option in options),
        )
        return ModuleIR(
            header=self._header(entry),
            imports=(decl,),
            default_reexport=exported,
            named_reexports=options,
        )

    def build_page(
        self,
        entry: RouteTreeEntry,
        shape: ExportShape,
        layouts: Sequence[tuple[RelativePath, ExportShape]] = (),
    ) -> ModuleIR:
        """Compose a route with its layout chain into one page module.

        Args:
            entry: The route entry.
            shape: Export shape of the route file.
            layouts: ``(relative, shape)`` per layout, outermost first.

        """
        target = self._target(entry)
        names = _NameRegistry(_RESERVED_NAMES)
        source_imports: list[ImportDecl] = []
        view_layers: list[str] = []
        loader_calls: list[str] = []

        for layout, layout_shape in layouts:
            component = names.register(layout_identifier(layout))
            decl, loader = self._source_import(
                self.import_specifier(layout, target), component, layout_shape, names,
            )
            if decl is None:
                continue
            source_imports.append(decl)
            if layout_shape.has_default_export:
                view_layers.append(component)
            if loader is not None:
                loader_calls.append(loader)

        route_decl, route_loader = self._source_import(
            self.import_specifier(entry.relative, target), ROUTE_COMPONENT, shape, names,
        )
        if route_decl is not None:
            source_imports.append(route_decl)
        if route_loader is not None:
            loader_calls.append(route_loader)

        view = _compose_view(view_layers, ROUTE_COMPONENT) if shape.has_default_export else None
        if view is None and not loader_calls:
            msg = f"{entry.relative} exports neither a view nor {DATA_LOADER_NAME}"
            raise GenerateError(msg)

        imports: list[ImportDecl] = []
        if view is not None:
            imports.append(ImportDecl(source=REACT_MODULE, default="React"))
        if loader_calls:
            imports.append(
                ImportDecl(source=MERGE_MODULE, named=((MERGE_FUNCTION, MERGE_FUNCTION),)),
            )

        view_wrapper = None
        if view is not None and self._config.component_wrapper is not None:
            decl, view_wrapper = self._wrapper_import(self._config.component_wrapper, names)
            imports.append(decl)

        loader = None
        if loader_calls:
            loader_wrapper = None
            if self._config.data_loader_wrapper is not None:
                decl, loader_wrapper = self._wrapper_import(
                    self._config.data_loader_wrapper, names,
                )
                imports.append(decl)
            loader = LoaderIR(
                calls=tuple(loader_calls),
                export_name=DATA_LOADER_NAME,
                wrapper=loader_wrapper,
            )

        imports.extend(source_imports)
        return ModuleIR(
            header=self._header(entry),
            imports=tuple(imports),
            loader=loader,
            view=view,
            view_wrapper=view_wrapper,
        )

    def render(self, module: ModuleIR) -> str:
        """Serialize *module* to TypeScript source text."""
        return render_module(module)

    def import_specifier(self, relative: RelativePath, target: TargetPath) -> str:
        """Module specifier the page at *target* uses to import *relative*.

        With ``import_prefix`` set the specifier is ``<prefix>/<relative>``;
        otherwise it is relative to the generated page's folder.  Extensions
        are always stripped.

        """
        stripped = _strip_extension(relative)
        if self._config.import_prefix is not None:
            return f"{self._config.import_prefix}/{stripped}"
        base = (self._config.pages_path / target).parent
        return Path(os.path.relpath(self._config.routes_path / stripped, base)).as_posix()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _target(self, entry: RouteTreeEntry) -> TargetPath:
        target = entry.target
        if target is None:
            msg = f"{entry.relative} has no target path"
            raise GenerateError(msg)
        return target

    def _source_import(
        self,
        source: str,
        component: str,
        shape: ExportShape,
        names: _NameRegistry,
    ) -> tuple[ImportDecl | None, str | None]:
        default = component if shape.has_default_export else None
        loader = None
        named: tuple[tuple[str, str], ...] = ()
        if shape.has_named_data_loader:
            loader = names.register(_loader_identifier(component))
            named = ((DATA_LOADER_NAME, loader),)
        if default is None and not named:
            return None, None
        return ImportDecl(source=source, default=default, named=named), loader

    def _wrapper_import(
        self, wrapper: WrapperFunction, names: _NameRegistry,
    ) -> tuple[ImportDecl, str]:
        local = names.register(wrapper.exported_name)
        decl = ImportDecl(source=wrapper.import_path, named=((wrapper.exported_name, local),))
        return decl, local

    def _header(self, entry: RouteTreeEntry) -> str:
        return f"Generated by trellis from {entry.relative}. Do not edit."


def _compose_view(layers: Sequence[str], route: str) -> ViewNode:
    """Fold the layout chain around the route, outermost layer first."""
    node = ViewNode(component=route)
    for component in reversed(layers):
        node = ViewNode(component=component, child=node)
    return node
