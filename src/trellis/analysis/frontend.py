"""Syntax front end — top-level export statements via tree-sitter.

Parses a JS/TS module and reports one ``ExportDeclaration`` per top-level
``export`` statement.  Nothing is executed and nothing beyond the export
surface is inspected; the analyzer builds its ``ExportShape`` from these
records so no caller ever touches syntax nodes.

Supported forms::

    export default function Page() {}
    export default Page
    export async function getServerSideProps() {}
    export const getServerSideProps = wrap(load)
    export const { getServerSideProps, config } = helpers
    export { load as getServerSideProps, Page as default }
    export { getServerSideProps } from "./data"
    export * as data from "./data"

Type-only exports (``export type``, ``export interface``, ``export type {}``)
produce no value names.  ``export * from`` produces nothing: its names are
not knowable without resolving the other module.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from tree_sitter_language_pack import get_parser

from trellis._errors import ParseError

if TYPE_CHECKING:
    from tree_sitter import Node

# Grammar per source extension; the tsx grammar rejects `<T>value` casts.
_GRAMMARS: dict[str, str] = {
    ".tsx": "tsx",
    ".ts": "typescript",
    ".jsx": "javascript",
    ".js": "javascript",
}

# Declarations that bind a single value name through their `name` field.
_NAMED_DECLARATIONS: frozenset[str] = frozenset({
    "function_declaration",
    "generator_function_declaration",
    "function_signature",
    "class_declaration",
    "abstract_class_declaration",
    "enum_declaration",
})

_VARIABLE_DECLARATIONS: frozenset[str] = frozenset({
    "lexical_declaration",
    "variable_declaration",
})


@dataclass(frozen=True, slots=True)
class ExportDeclaration:
    """One top-level export statement.

    Attributes:
        is_default: True if the statement provides the module's default export.
        names: Value-level names the statement exports, in source order.
        line: 1-based line of the statement.

    """

    is_default: bool
    names: tuple[str, ...]
    line: int


def parse_exports(source: bytes, suffix: str) -> tuple[ExportDeclaration, ...]:
    """Parse *source* and return its top-level export statements.

    Args:
        source: Raw module source.
        suffix: File extension selecting the grammar (``.tsx``, ``.ts``, ...).

    Raises:
        ParseError: If the extension is unsupported or the source contains
            syntax errors.

    """
    grammar = _GRAMMARS.get(suffix)
    if grammar is None:
        msg = f"No grammar for {suffix!r} files"
        raise ParseError(msg)

    tree = get_parser(grammar).parse(source)
    root = tree.root_node
    if root.has_error:
        line = _first_error_line(root)
        msg = f"Syntax error near line {line}"
        raise ParseError(msg)

    return tuple(
        _read_export(node)
        for node in root.named_children
        if node.type == "export_statement"
    )


def _read_export(node: Node) -> ExportDeclaration:
    line = node.start_point[0] + 1
    tokens = {child.type for child in node.children if not child.is_named}

    # `export = value` (TypeScript CommonJS interop) acts as the default.
    if "default" in tokens or "=" in tokens:
        return ExportDeclaration(is_default=True, names=(), line=line)

    # `export type { A }`: type-only specifier list
    if "type" in tokens:
        return ExportDeclaration(is_default=False, names=(), line=line)

    declaration = node.child_by_field_name("declaration")
    if declaration is not None:
        return ExportDeclaration(
            is_default=False, names=tuple(_declaration_names(declaration)), line=line,
        )

    is_default = False
    names: list[str] = []
    for child in node.named_children:
        if child.type == "export_clause":
            for specifier in child.named_children:
                if specifier.type != "export_specifier" or _is_type_only(specifier):
                    continue
                exported = _specifier_export_name(specifier)
                if exported == "default":
                    is_default = True
                else:
                    names.append(exported)
        elif child.type == "namespace_export":
            names.extend(
                _module_export_name(part)
                for part in child.named_children
            )
    return ExportDeclaration(is_default=is_default, names=tuple(names), line=line)


def _declaration_names(declaration: Node) -> list[str]:
    if declaration.type in _NAMED_DECLARATIONS:
        name = declaration.child_by_field_name("name")
        return [_text(name)] if name is not None else []
    if declaration.type in _VARIABLE_DECLARATIONS:
        names: list[str] = []
        for declarator in declaration.named_children:
            if declarator.type != "variable_declarator":
                continue
            target = declarator.child_by_field_name("name")
            if target is not None:
                names.extend(_binding_names(target))
        return names
    # interface_declaration, type_alias_declaration, ambient declarations
    return []


def _binding_names(pattern: Node) -> list[str]:
    """Names bound by a declarator target, including destructuring patterns."""
    kind = pattern.type
    if kind in ("identifier", "shorthand_property_identifier_pattern"):
        return [_text(pattern)]
    if kind == "pair_pattern":
        value = pattern.child_by_field_name("value")
        return _binding_names(value) if value is not None else []
    if kind in ("assignment_pattern", "object_assignment_pattern"):
        left = pattern.child_by_field_name("left")
        return _binding_names(left) if left is not None else []
    names: list[str] = []
    for child in pattern.named_children:
        names.extend(_binding_names(child))
    return names


def _specifier_export_name(specifier: Node) -> str:
    alias = specifier.child_by_field_name("alias")
    if alias is not None:
        return _module_export_name(alias)
    name = specifier.child_by_field_name("name")
    return _module_export_name(name) if name is not None else ""


def _is_type_only(specifier: Node) -> bool:
    return any(child.type == "type" for child in specifier.children)


def _module_export_name(node: Node) -> str:
    text = _text(node)
    if node.type == "string":
        return text[1:-1]
    return text


def _text(node: Node) -> str:
    return (node.text or b"").decode("utf-8")


def _first_error_line(root: Node) -> int:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node.start_point[0] + 1
        stack.extend(reversed(node.children))
    return root.start_point[0] + 1
