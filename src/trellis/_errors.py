"""Trellis error hierarchy.

All trellis-specific errors inherit from TrellisError for easy catching.
"""

from __future__ import annotations

from pathlib import Path


class TrellisError(Exception):
    """Base error for all trellis operations."""


class ConfigError(TrellisError):
    """Invalid or missing configuration."""


class ParseError(TrellisError):
    """The front end could not build a syntax tree for a source file."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class GenerateError(TrellisError):
    """A generated artifact could not be assembled."""


class WriteError(TrellisError):
    """An output file could not be created, written, or removed."""


class RouteConflictError(TrellisError):
    """Two route files map to the same generated target path."""
