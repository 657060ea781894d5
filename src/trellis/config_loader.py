"""Load TrellisConfig from trellis.yaml or trellis.toml if present.

Merges file config with CLI kwargs. CLI overrides file.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

import yaml

from trellis._errors import ConfigError
from trellis.config import TrellisConfig, WrapperFunction

# camelCase spellings accepted alongside the dataclass field names
_KEY_ALIASES: dict[str, str] = {
    "routesDir": "routes_dir",
    "pagesDir": "pages_dir",
    "componentWrapperFunction": "component_wrapper",
    "dataLoaderWrapperFunction": "data_loader_wrapper",
    "importPrefix": "import_prefix",
    "debounceMs": "debounce_ms",
}

_KNOWN_KEYS: frozenset[str] = frozenset({
    "routes_dir",
    "pages_dir",
    "component_wrapper",
    "data_loader_wrapper",
    "import_prefix",
    "debounce_ms",
})


def load_config(root: Path, **overrides: object) -> TrellisConfig:
    """Load TrellisConfig from root, optionally merging trellis.yaml.

    Looks for trellis.yaml, trellis.yml, or trellis.toml in root. If found,
    loads and merges with overrides. Overrides that are ``None`` are ignored
    so unset CLI flags never mask file values.

    Raises:
        ConfigError: If the config file is unreadable or holds invalid values.

    """
    file_config = _read_trellis_config(root)
    merged = {**file_config, **{k: v for k, v in overrides.items() if v is not None}}
    return TrellisConfig(root=root, **_normalize(merged))


def _read_trellis_config(root: Path) -> dict[str, object]:
    """Read trellis config from yaml/toml if present. Returns empty dict otherwise."""
    for name in ("trellis.yaml", "trellis.yml"):
        path = root / name
        if path.is_file():
            return _parse_yaml(path)
    toml_path = root / "trellis.toml"
    if toml_path.is_file():
        return _parse_toml(toml_path)
    return {}


def _parse_yaml(path: Path) -> dict[str, object]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        msg = f"Failed to read {path}: {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(data, dict):
        msg = f"{path}: expected a mapping at the top level"
        raise ConfigError(msg)
    return _flatten_trellis_section(data)


def _parse_toml(path: Path) -> dict[str, object]:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        msg = f"Failed to read {path}: {exc}"
        raise ConfigError(msg) from exc
    return _flatten_trellis_section(data)


def _flatten_trellis_section(data: dict[str, object]) -> dict[str, object]:
    """Extract trellis.* keys into top-level config, resolving aliases."""
    result: dict[str, object] = {}
    for k, v in data.items():
        key = _KEY_ALIASES.get(k, k)
        if key in _KNOWN_KEYS:
            result[key] = v
    section = data.get("trellis")
    if isinstance(section, dict):
        for k, v in section.items():
            result[_KEY_ALIASES.get(k, k)] = v
    return result


def _normalize(values: dict[str, object]) -> dict[str, object]:
    """Coerce raw file/CLI values into TrellisConfig field types."""
    unknown = set(values) - _KNOWN_KEYS
    if unknown:
        msg = f"Unknown config keys: {', '.join(sorted(unknown))}"
        raise ConfigError(msg)

    result: dict[str, object] = {}
    for key, value in values.items():
        if key in ("routes_dir", "pages_dir"):
            if not isinstance(value, (str, Path)):
                msg = f"{key} must be a path, got {type(value).__name__}"
                raise ConfigError(msg)
            result[key] = Path(value)
        elif key in ("component_wrapper", "data_loader_wrapper"):
            result[key] = _wrapper(key, value)
        elif key == "debounce_ms":
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                msg = f"debounce_ms must be a non-negative integer, got {value!r}"
                raise ConfigError(msg)
            result[key] = value
        else:
            result[key] = str(value)
    return result


def _wrapper(key: str, value: object) -> WrapperFunction:
    if isinstance(value, WrapperFunction):
        return value
    if not isinstance(value, dict):
        msg = f"{key} must be a mapping with importPath and exportedName"
        raise ConfigError(msg)
    import_path = value.get("import_path", value.get("importPath"))
    exported_name = value.get("exported_name", value.get("exportedName"))
    if not isinstance(import_path, str) or not isinstance(exported_name, str):
        msg = f"{key} must define string importPath and exportedName"
        raise ConfigError(msg)
    return WrapperFunction(import_path=import_path, exported_name=exported_name)
