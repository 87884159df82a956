"""Load WhiskerConfig from whisker.yaml if present.

Merges file config with CLI kwargs. CLI overrides file.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

import yaml

from whisker._errors import ConfigError
from whisker.config import WhiskerConfig

CONFIG_FILENAMES: tuple[str, ...] = ("whisker.yaml", "whisker.yml", "whisker.toml")

_KNOWN_KEYS: frozenset[str] = frozenset({
    "output_dir", "content_dir", "layouts_dir", "lib_dir", "rules_file",
    "text_extensions", "index_filenames", "enable_output_diff",
})


def load_config(root: Path, **overrides: object) -> WhiskerConfig:
    """Load WhiskerConfig from root, optionally merging whisker.yaml.

    Looks for whisker.yaml, whisker.yml, or whisker.toml in root. If found,
    loads and merges with overrides. Overrides take precedence.

    Raises:
        ConfigError: If the config file cannot be parsed.

    """
    path = find_config_file(root)
    file_config = _read_config(path) if path is not None else {}
    merged = {**file_config, **{k: v for k, v in overrides.items() if v is not None}}

    known = {k: v for k, v in merged.items() if k in _KNOWN_KEYS}
    extra = {k: v for k, v in merged.items() if k not in _KNOWN_KEYS}

    if "output_dir" in known and not isinstance(known["output_dir"], Path):
        known["output_dir"] = Path(str(known["output_dir"]))
    for key in ("text_extensions", "index_filenames"):
        if key in known:
            known[key] = tuple(str(v) for v in known[key])  # type: ignore[union-attr]

    try:
        return WhiskerConfig(root=Path(root), extra=extra, **known)  # type: ignore[arg-type]
    except TypeError as exc:
        msg = f"Invalid configuration in {path}: {exc}"
        raise ConfigError(msg) from exc


def find_config_file(root: Path) -> Path | None:
    """Return the first config file present in *root*, or None."""
    for name in CONFIG_FILENAMES:
        path = Path(root) / name
        if path.is_file():
            return path
    return None


def config_mtime(root: Path) -> float | None:
    """Modification time of the site's config file; None when there is none."""
    path = find_config_file(root)
    if path is None:
        return None
    return path.stat().st_mtime


def _read_config(path: Path) -> dict[str, object]:
    try:
        if path.suffix == ".toml":
            data = tomllib.loads(path.read_text(encoding="utf-8"))
        else:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (yaml.YAMLError, tomllib.TOMLDecodeError) as exc:
        msg = f"Failed to parse {path}: {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(data, dict):
        msg = f"{path} must contain a mapping at the top level"
        raise ConfigError(msg)
    return _flatten_whisker_section(data)


def _flatten_whisker_section(data: dict[str, object]) -> dict[str, object]:
    """Extract whisker.* keys into top-level config."""
    result: dict[str, object] = {}
    section = data.get("whisker")
    if isinstance(section, dict):
        result.update(section)
    for k, v in data.items():
        if k != "whisker":
            result.setdefault(k, v)
    return result
