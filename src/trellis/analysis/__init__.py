"""Static export analysis for route and layout files."""

from trellis.analysis.exports import (
    DATA_LOADER_NAME,
    ExportAnalyzer,
    ExportShape,
    shape_from_declarations,
)
from trellis.analysis.frontend import ExportDeclaration, parse_exports

__all__ = [
    "DATA_LOADER_NAME",
    "ExportAnalyzer",
    "ExportDeclaration",
    "ExportShape",
    "parse_exports",
    "shape_from_declarations",
]
