"""Filesystem data source — loads a site from its directory tree.

Layout of a site::

    my-site/
        whisker.yaml          site configuration (optional)
        rules.yaml            compile, route and layout rules (optional)
        content/              items
            index.md          -> /
            about.md          -> /about/
            blog/index.md     -> /blog/
            blog/first.md     -> /blog/first/
            logo.png          -> /logo/  (binary)
            logo.yaml         metadata for /logo/
        layouts/
            default.kida      -> /default/
        lib/
            filters.py        custom filters, imported at load time

Textual files may start with YAML front matter between ``---`` lines.  Any
file may instead have a sibling ``<name>.yaml`` metadata file.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from whisker._errors import ConfigError
from whisker.config_loader import config_mtime
from whisker.core.item import Item, Layout, clean_identifier
from whisker.core.site import Site
from whisker.data_sources.code import load_code_snippets
from whisker.rules.resolver import load_rules

if TYPE_CHECKING:
    from whisker.config import WhiskerConfig
    from whisker.observability.bus import NotificationCenter

_META_SUFFIX = ".yaml"
_FRONT_MATTER_DELIMITER = "---"
_INDEX_STEM = "index"


@dataclass(frozen=True, slots=True)
class SourceEntry:
    """One item or layout on disk.

    Attributes:
        identifier: Cleaned identifier derived from the file's location.
        content_path: File holding the content.
        meta_path: Sibling metadata file, if any.

    """

    identifier: str
    content_path: Path
    meta_path: Path | None

    @property
    def mtime(self) -> float:
        mtime = self.content_path.stat().st_mtime
        if self.meta_path is not None:
            mtime = max(mtime, self.meta_path.stat().st_mtime)
        return mtime


def load_site(config: WhiskerConfig, *, load_code: bool = True) -> Site:
    """Build a ``Site`` from the directory at ``config.root``.

    Args:
        config: Site configuration.
        load_code: Import the modules in the lib directory so the filters
            they define are registered.

    Raises:
        ConfigError: On duplicate identifiers, malformed front matter or
            metadata, or an invalid rules file.

    """
    items = load_items(config)
    layouts = load_layouts(config)
    code_snippets = load_code_snippets(config.lib_path) if load_code else ()
    rules = load_rules(config.rules_path)

    # A file that does not exist cannot have changed.
    cfg_mtime = config_mtime(config.root)
    rules_mtime = (
        config.rules_path.stat().st_mtime if config.rules_path.is_file() else 0.0
    )

    return Site(
        config,
        items,
        layouts,
        code_snippets,
        rules,
        config_mtime=cfg_mtime if cfg_mtime is not None else 0.0,
        rules_mtime=rules_mtime,
    )


def load_items(config: WhiskerConfig) -> list[Item]:
    """Load every item below the content directory, in path order."""
    items: list[Item] = []
    for entry in discover_entries(config.content_path):
        suffix = entry.content_path.suffix
        text = config.is_text_extension(suffix) if suffix else True
        if text:
            raw_text, attributes = _read_text_source(entry)
            item = Item.text(entry.identifier, raw_text, attributes, entry.mtime)
        else:
            attributes = _read_meta(entry.meta_path)
            item = Item.binary_file(
                entry.identifier, entry.content_path, attributes, entry.mtime,
            )
        item.attributes.setdefault("content_filename", str(entry.content_path))
        items.append(item)
    return items


def load_layouts(config: WhiskerConfig) -> list[Layout]:
    """Load every layout below the layouts directory, in path order."""
    layouts: list[Layout] = []
    for entry in discover_entries(config.layouts_path):
        raw_text, attributes = _read_text_source(entry)
        layouts.append(Layout(entry.identifier, raw_text, attributes, entry.mtime))
    return layouts


def discover_entries(directory: Path) -> list[SourceEntry]:
    """Pair content files with their metadata files below *directory*.

    Hidden files, editor backups and ``__pycache__`` are ignored.

    Raises:
        ConfigError: If two files map to the same identifier.

    """
    if not directory.is_dir():
        return []

    groups: dict[tuple[Path, str], list[Path]] = {}
    for path in sorted(directory.rglob("*")):
        if not path.is_file() or _ignored(path, directory):
            continue
        groups.setdefault((path.parent, path.stem), []).append(path)

    entries: list[SourceEntry] = []
    seen: dict[str, Path] = {}
    for files in groups.values():
        metas = [p for p in files if p.suffix == _META_SUFFIX]
        contents = [p for p in files if p.suffix != _META_SUFFIX]
        meta_path = metas[0] if contents and metas else None
        if not contents:
            # A lone YAML file is content in its own right.
            contents = metas
        for content_path in contents:
            identifier = identifier_for(content_path, directory)
            previous = seen.get(identifier)
            if previous is not None:
                msg = (
                    f"Duplicate identifier {identifier!r}: "
                    f"{previous} and {content_path}"
                )
                raise ConfigError(msg)
            seen[identifier] = content_path
            entries.append(SourceEntry(identifier, content_path, meta_path))
    return entries


def identifier_for(path: Path, directory: Path) -> str:
    """Derive an identifier from a file's position below *directory*.

    ``about.md`` -> ``/about/``, ``index.md`` -> ``/``,
    ``blog/index.md`` -> ``/blog/``, ``style.min.css`` -> ``/style.min/``.
    """
    relative = path.relative_to(directory)
    parts = list(relative.parent.parts)
    stem = relative.stem
    if stem != _INDEX_STEM:
        parts.append(stem)
    return clean_identifier("/".join(parts))


def split_front_matter(text: str, source: Path | None = None) -> tuple[dict[str, Any], str]:
    """Split ``---`` delimited YAML front matter from *text*.

    Returns the attributes and the remaining content.  Text without front
    matter yields empty attributes and the text unchanged.

    Raises:
        ConfigError: If the front matter is unterminated, invalid YAML, or
            not a mapping.

    """
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != _FRONT_MATTER_DELIMITER:
        return {}, text

    for index in range(1, len(lines)):
        if lines[index].rstrip("\r\n") == _FRONT_MATTER_DELIMITER:
            break
    else:
        msg = f"Unterminated front matter in {source or 'content'}"
        raise ConfigError(msg)

    header = "".join(lines[1:index])
    body = "".join(lines[index + 1:])
    # Content starts after the blank line that conventionally follows.
    if body.startswith("\r\n"):
        body = body[2:]
    elif body.startswith("\n"):
        body = body[1:]
    return _parse_attributes(header, source), body


def create_item(
    config: WhiskerConfig,
    identifier: str,
    content: str,
    attributes: dict[str, Any] | None = None,
    *,
    extension: str = ".html",
    bus: NotificationCenter | None = None,
) -> Path:
    """Write a new textual item with front matter into the content directory.

    Returns the path of the created file.

    Raises:
        ConfigError: If an item with *identifier* already exists.

    """
    return _create_source(
        config.content_path, identifier, content, attributes, extension, bus,
    )


def create_layout(
    config: WhiskerConfig,
    identifier: str,
    content: str,
    attributes: dict[str, Any] | None = None,
    *,
    extension: str = ".kida",
    bus: NotificationCenter | None = None,
) -> Path:
    """Write a new layout into the layouts directory; see ``create_item``."""
    return _create_source(
        config.layouts_path, identifier, content, attributes, extension, bus,
    )


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------

def _create_source(
    directory: Path,
    identifier: str,
    content: str,
    attributes: dict[str, Any] | None,
    extension: str,
    bus: NotificationCenter | None,
) -> Path:
    identifier = clean_identifier(identifier)
    if any(entry.identifier == identifier for entry in discover_entries(directory)):
        msg = f"{identifier!r} already exists in {directory}"
        raise ConfigError(msg)

    if identifier == "/":
        path = directory / f"{_INDEX_STEM}{extension}"
    else:
        path = directory / f"{identifier.strip('/')}{extension}"

    header = ""
    if attributes:
        dumped = yaml.safe_dump(dict(attributes), sort_keys=False, allow_unicode=True)
        header = f"{_FRONT_MATTER_DELIMITER}\n{dumped}{_FRONT_MATTER_DELIMITER}\n\n"

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(header + content, encoding="utf-8")

    if bus is not None:
        from whisker.observability.events import FileCreated

        bus.post(FileCreated(path=path))
    return path


def _ignored(path: Path, directory: Path) -> bool:
    relative = path.relative_to(directory)
    if any(part.startswith(".") or part == "__pycache__" for part in relative.parts):
        return True
    return path.name.endswith(("~", ".orig", ".rej", ".bak"))


def _read_text_source(entry: SourceEntry) -> tuple[str, dict[str, Any]]:
    try:
        text = entry.content_path.read_bytes().decode("utf-8")
    except UnicodeDecodeError as exc:
        msg = f"{entry.content_path} is not valid UTF-8 text: {exc}"
        raise ConfigError(msg) from exc

    if entry.meta_path is not None:
        return text, _read_meta(entry.meta_path)
    attributes, body = split_front_matter(text, entry.content_path)
    return body, attributes


def _read_meta(meta_path: Path | None) -> dict[str, Any]:
    if meta_path is None:
        return {}
    return _parse_attributes(meta_path.read_bytes().decode("utf-8"), meta_path)


def _parse_attributes(source: str, path: Path | None) -> dict[str, Any]:
    try:
        data = yaml.safe_load(source)
    except yaml.YAMLError as exc:
        msg = f"Invalid metadata in {path or 'content'}: {exc}"
        raise ConfigError(msg) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Metadata in {path or 'content'} must be a mapping"
        raise ConfigError(msg)
    return data
