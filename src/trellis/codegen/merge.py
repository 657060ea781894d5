"""Data loader result merging.

Generated pages combine the results of every data loader on a route (layouts
outermost first, the route last) with ``deepmerge`` from ``deepmerge-ts`` and
then apply one domain rule: a redirect supersedes prop delivery.

The functions here are the reference model of that runtime behavior.  Code
generation never calls them: ``render_loader`` in ``trellis.codegen.ir``
emits the TypeScript, and only the key names below are shared with it.  The
generic merge and the redirect rule are separate functions.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

REDIRECT_KEY = "redirect"
PROPS_KEY = "props"


def deep_merge(*values: Any) -> Any:
    """Merge *values* left to right, later values winning.

    Mappings merge key-wise and recursively, sequences (other than strings)
    concatenate, sets union, and any other collision takes the later value.
    Inputs are never mutated.

    """
    if not values:
        return {}
    result = _copy(values[0])
    for value in values[1:]:
        result = _merge_pair(result, value)
    return result


def _merge_pair(left: Any, right: Any) -> Any:
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        merged = dict(left)
        for key, value in right.items():
            merged[key] = _merge_pair(merged[key], value) if key in merged else _copy(value)
        return merged
    if _is_sequence(left) and _is_sequence(right):
        return [*left, *(_copy(item) for item in right)]
    if isinstance(left, (set, frozenset)) and isinstance(right, (set, frozenset)):
        return set(left) | set(right)
    return _copy(right)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _copy(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _copy(item) for key, item in value.items()}
    if _is_sequence(value):
        return [_copy(item) for item in value]
    return value


def drop_props_on_redirect(result: dict[str, Any]) -> dict[str, Any]:
    """Remove ``props`` from a merged loader result that carries ``redirect``."""
    if REDIRECT_KEY in result:
        return {key: value for key, value in result.items() if key != PROPS_KEY}
    return result


def merge_loader_results(results: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
    """Combine per-loader results in call order into one loader result.

    With no contributing results the merged value is ``{"props": {}}``.

    """
    if not results:
        return {PROPS_KEY: {}}
    return drop_props_on_redirect(deep_merge(*results))
