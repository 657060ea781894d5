"""Page module generation: IR, serializer, and loader merge semantics."""

from trellis.codegen.generator import CodeGenerator, layout_identifier
from trellis.codegen.ir import ImportDecl, LoaderIR, ModuleIR, ViewNode, render_module
from trellis.codegen.merge import deep_merge, drop_props_on_redirect, merge_loader_results

__all__ = [
    "CodeGenerator",
    "ImportDecl",
    "LoaderIR",
    "ModuleIR",
    "ViewNode",
    "deep_merge",
    "drop_props_on_redirect",
    "layout_identifier",
    "merge_loader_results",
    "render_module",
]
