"""Intermediate representation of a generated page module, and its serializer.

The generator never concatenates source text; it builds a ``ModuleIR`` and
``render_module`` turns it into TypeScript.  Keeping the two apart lets the
composition logic be tested on plain dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass

from trellis.codegen.merge import PROPS_KEY, REDIRECT_KEY

_INDENT = "\t"

PAGE_COMPONENT = "Page"
COMBINED_LOADER = "combinedGetServerSideProps"
MERGE_FUNCTION = "deepmerge"


@dataclass(frozen=True, slots=True)
class ImportDecl:
    """One import statement.

    Attributes:
        source: Module specifier.
        default: Local name bound to the default export, if imported.
        named: ``(exported, local)`` pairs for named imports.

    """

    source: str
    default: str | None = None
    named: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True, slots=True)
class ViewNode:
    """A component in the composed view; ``child`` is rendered inside it."""

    component: str
    child: ViewNode | None = None

    def depth(self) -> int:
        return 1 if self.child is None else 1 + self.child.depth()


@dataclass(frozen=True, slots=True)
class LoaderIR:
    """The combined data loader.

    Attributes:
        calls: Local names of contributing loaders, in call order.
        export_name: Name the combined loader is exported under.
        wrapper: Local name of a function applied once around it.

    """

    calls: tuple[str, ...]
    export_name: str
    wrapper: str | None = None


@dataclass(frozen=True, slots=True)
class ModuleIR:
    """A complete generated module.

    Attributes:
        header: Comment placed on the first line.
        imports: Import statements in output order.
        loader: Combined data loader, if any contributor exports one.
        view: Composed view tree, if the route has a view unit.
        view_wrapper: Local name of a function applied once around the view.
        default_reexport: Local name exported as default verbatim
            (passthrough modules).
        named_reexports: Local names exported under their own names.

    """

    header: str
    imports: tuple[ImportDecl, ...]
    loader: LoaderIR | None = None
    view: ViewNode | None = None
    view_wrapper: str | None = None
    default_reexport: str | None = None
    named_reexports: tuple[str, ...] = ()


def render_module(module: ModuleIR) -> str:
    """Serialize *module* to TypeScript source text."""
    blocks: list[str] = [
        f"// {module.header}",
        "\n".join(render_import(decl) for decl in module.imports),
    ]
    if module.loader is not None:
        blocks.append(render_loader(module.loader))
    if module.view is not None:
        blocks.append(render_page(module.view, module.view_wrapper))
    if module.default_reexport is not None:
        blocks.append(f"export default {module.default_reexport}")
    if module.named_reexports:
        blocks.append(f"export {{ {', '.join(module.named_reexports)} }}")
    return "\n\n".join(block for block in blocks if block) + "\n"


def render_import(decl: ImportDecl) -> str:
    bindings: list[str] = []
    if decl.default is not None:
        bindings.append(decl.default)
    if decl.named:
        members = ", ".join(
            name if name == local else f"{name} as {local}"
            for name, local in decl.named
        )
        bindings.append(f"{{ {members} }}")
    if not bindings:
        return f"import {_quote(decl.source)}"
    return f"import {', '.join(bindings)} from {_quote(decl.source)}"


def render_view(node: ViewNode, level: int = 0) -> list[str]:
    """Render a view tree as JSX lines, each layer forwarding ``props``."""
    pad = _INDENT * level
    if node.child is None:
        return [f"{pad}<{node.component} {{...props}} />"]
    return [
        f"{pad}<{node.component} {{...props}}>",
        *render_view(node.child, level + 1),
        f"{pad}</{node.component}>",
    ]


def render_page(view: ViewNode, wrapper: str | None) -> str:
    jsx = "\n".join(render_view(view, level=2))
    exported = f"{wrapper}({PAGE_COMPONENT})" if wrapper else PAGE_COMPONENT
    return (
        f"function {PAGE_COMPONENT}(props: any) {{\n"
        f"{_INDENT}return (\n"
        f"{jsx}\n"
        f"{_INDENT})\n"
        f"}}\n\n"
        f"export default {exported}"
    )


def render_loader(loader: LoaderIR) -> str:
    calls = "\n".join(
        f"{_INDENT * 2}await {name}(context)," for name in loader.calls
    )
    exported = f"{loader.wrapper}({COMBINED_LOADER})" if loader.wrapper else COMBINED_LOADER
    return (
        f"async function {COMBINED_LOADER}(context: any) {{\n"
        f"{_INDENT}const merged: any = {MERGE_FUNCTION}(\n"
        f"{calls}\n"
        f"{_INDENT})\n"
        f"{_INDENT}if ({_quote(REDIRECT_KEY)} in merged) {{\n"
        f"{_INDENT * 2}delete merged.{PROPS_KEY}\n"
        f"{_INDENT}}}\n"
        f"{_INDENT}return merged\n"
        f"}}\n\n"
        f"export const {loader.export_name} = {exported}"
    )


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"
