"""Items, layouts and code snippets — the source side of a site.

These objects are created by a data source at load time and live for one
compilation run.  Only an item's attribute mapping is mutable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from whisker.core.content import BinaryContent, Content, TextContent

if TYPE_CHECKING:
    from whisker.core.rep import ItemRep

DEFAULT_REP = "default"


def clean_identifier(identifier: str) -> str:
    """Normalise an identifier to the ``/a/b/`` form.

    ``about`` -> ``/about/``, ``/blog/post`` -> ``/blog/post/``, ``""`` -> ``/``.
    """
    stripped = identifier.strip("/")
    if not stripped:
        return "/"
    return f"/{stripped}/"


class Item:
    """A unit of source content with one or more representations.

    Args:
        identifier: Path-like identity, cleaned to ``/a/b/`` form.
        raw: Raw textual content or a reference to the raw file.
        attributes: Arbitrary metadata (front matter).
        mtime: Source modification time; None when unknown.

    """

    def __init__(
        self,
        identifier: str,
        raw: Content,
        attributes: dict[str, Any] | None = None,
        mtime: float | None = None,
    ) -> None:
        self._identifier = clean_identifier(identifier)
        self._raw = raw
        self.attributes: dict[str, Any] = dict(attributes or {})
        self._mtime = mtime
        self.reps: dict[str, ItemRep] = {}

    @classmethod
    def text(
        cls,
        identifier: str,
        content: str,
        attributes: dict[str, Any] | None = None,
        mtime: float | None = None,
    ) -> Item:
        """Create a textual item."""
        return cls(identifier, TextContent(content), attributes, mtime)

    @classmethod
    def binary_file(
        cls,
        identifier: str,
        path: Path,
        attributes: dict[str, Any] | None = None,
        mtime: float | None = None,
    ) -> Item:
        """Create a binary item backed by the file at *path*."""
        return cls(identifier, BinaryContent(Path(path)), attributes, mtime)

    @property
    def identifier(self) -> str:
        return self._identifier

    @property
    def raw(self) -> Content:
        return self._raw

    @property
    def raw_content(self) -> str | None:
        """Raw text, or None for binary items."""
        return self._raw.text if isinstance(self._raw, TextContent) else None

    @property
    def raw_filename(self) -> Path | None:
        """Path of the raw file, or None for textual items."""
        return self._raw.path if isinstance(self._raw, BinaryContent) else None

    @property
    def binary(self) -> bool:
        return self._raw.binary

    @property
    def mtime(self) -> float | None:
        return self._mtime

    def rep_named(self, name: str = DEFAULT_REP) -> ItemRep:
        """Return the rep called *name*; raises KeyError if there is none."""
        return self.reps[name]

    def build_reps(self, names: list[str] | tuple[str, ...] = ()) -> None:
        """Create one rep per name; the default rep always exists."""
        from whisker.core.rep import ItemRep

        self.reps = {DEFAULT_REP: ItemRep(self, DEFAULT_REP)}
        for name in names:
            if name not in self.reps:
                self.reps[name] = ItemRep(self, name)

    def __getitem__(self, key: str) -> Any:
        return self.attributes.get(key)

    def __repr__(self) -> str:
        kind = "binary" if self.binary else "text"
        return f"<Item {self._identifier} {kind} reps={list(self.reps)}>"


@dataclass(frozen=True, slots=True)
class Layout:
    """A reusable wrapper template.

    Attributes:
        identifier: Cleaned identifier (e.g., ``/default/``).
        raw_content: The template source.
        attributes: Layout metadata (front matter).
        mtime: Modification time; None when unknown.

    """

    identifier: str
    raw_content: str
    attributes: dict[str, Any] = field(default_factory=dict)
    mtime: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "identifier", clean_identifier(self.identifier))

    def __getitem__(self, key: str) -> Any:
        return self.attributes.get(key)


@dataclass(frozen=True, slots=True)
class CodeSnippet:
    """A module of auxiliary site code (custom filters, helpers).

    Attributes:
        identifier: Module path relative to the lib directory.
        path: Source file on disk.
        mtime: Modification time; None when unknown.

    """

    identifier: str
    path: Path
    mtime: float | None = None
