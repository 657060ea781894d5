"""Trellis configuration.

TrellisConfig is the central configuration object, frozen after creation.
"""

from dataclasses import dataclass, field
from pathlib import Path

from trellis._errors import ConfigError


@dataclass(frozen=True, slots=True)
class WrapperFunction:
    """A function imported into every generated page and applied once.

    Attributes:
        import_path: Module specifier to import from (e.g. ``~/utils/page``).
        exported_name: Named export of that module (e.g. ``definePage``).

    """

    import_path: str
    exported_name: str


@dataclass(frozen=True, slots=True)
class TrellisConfig:
    """Configuration for a trellis project.

    Attributes:
        root: Project root. Always resolved to an absolute path on construction.
        routes_dir: Source route tree, relative to ``root`` unless absolute.
        pages_dir: Generated pages directory, relative to ``root`` unless absolute.
        component_wrapper: Optional wrapper applied around every composed view.
        data_loader_wrapper: Optional wrapper applied around every combined
            data loader.
        import_prefix: Module specifier prefix used when importing route files
            from generated pages (e.g. ``~/routes``).  When unset, generated
            files import their sources through relative specifiers.
        debounce_ms: Quiet period that coalesces bursts of watch events.

    """

    root: Path = field(default_factory=Path.cwd)
    routes_dir: Path = field(default_factory=lambda: Path("routes"))
    pages_dir: Path = field(default_factory=lambda: Path("pages"))
    component_wrapper: WrapperFunction | None = None
    data_loader_wrapper: WrapperFunction | None = None
    import_prefix: str | None = None
    debounce_ms: int = 200

    def __post_init__(self) -> None:
        # watchfiles reports absolute paths, compared via Path.relative_to().
        if not self.root.is_absolute():
            object.__setattr__(self, "root", self.root.resolve())
        if self.import_prefix is not None:
            object.__setattr__(self, "import_prefix", self.import_prefix.rstrip("/"))
        # Stale cleanup deletes everything under pages/ it did not generate.
        routes, pages = self.routes_path.resolve(), self.pages_path.resolve()
        if routes.is_relative_to(pages) or pages.is_relative_to(routes):
            msg = f"routes_dir ({routes}) and pages_dir ({pages}) must not contain each other"
            raise ConfigError(msg)

    @property
    def routes_path(self) -> Path:
        """Absolute path to the source route tree."""
        if self.routes_dir.is_absolute():
            return self.routes_dir
        return self.root / self.routes_dir

    @property
    def pages_path(self) -> Path:
        """Absolute path to the generated pages directory."""
        if self.pages_dir.is_absolute():
            return self.pages_dir
        return self.root / self.pages_dir
