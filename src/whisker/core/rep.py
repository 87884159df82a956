"""Item representations — one compiled variant of an item.

An item can have several reps, each with its own output file, filter chain
and layout.  A rep owns a snapshot store holding its content at the stages
of its pipeline, and tracks whether it was compiled and written during the
current run.
"""

from __future__ import annotations

import difflib
import hashlib
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from whisker._errors import (
    CannotDetermineFilter,
    CannotLayoutBinary,
    CannotUseBinaryFilter,
    CannotUseTextualFilter,
    CompilationError,
    FilterKindMismatch,
    FilterOutputMissing,
    MissingSnapshot,
    UnmetDependency,
)
from whisker.core.content import (
    LAST,
    POST,
    PRE,
    BinaryContent,
    Content,
    SnapshotStore,
    TextContent,
)
from whisker.core.outdated import is_outdated
from whisker.observability.events import (
    DiffUnavailable,
    FilteringEnded,
    FilteringStarted,
)

if TYPE_CHECKING:
    from whisker._types import FilterParams, WriteAction
    from whisker.core.context import CompilationContext
    from whisker.core.item import Item
    from whisker.core.site import Site
    from whisker.observability.bus import NotificationCenter

_HASH_CHUNK = 64 * 1024


class RepState(Enum):
    """Compilation state of a rep within one run."""

    PENDING = "pending"
    COMPILING = "compiling"
    COMPILED = "compiled"
    UP_TO_DATE = "up_to_date"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class Ready:
    """Compiled content is available."""

    content: Content


@dataclass(frozen=True, slots=True)
class NotReady:
    """The rep has not been compiled yet in this run."""

    rep: ItemRep


type ContentLookup = Ready | NotReady


class ItemRep:
    """A single representation of an item.

    Args:
        item: The item this rep belongs to.
        name: Name of the rep, unique within its item.

    """

    def __init__(self, item: Item, name: str) -> None:
        self.item = item
        self.name = name
        self.force_outdated = False
        self.state = RepState.PENDING
        self.written = False
        self.modified = False
        self.created = False
        self._store = SnapshotStore(item.raw)
        self._old_bytes: bytes | None = None
        self._routed = False
        self._path: str | None = None
        self._raw_path: Path | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def binary(self) -> bool:
        """Whether the rep's current content is a file reference."""
        return self._store.binary

    @property
    def snapshots(self) -> SnapshotStore:
        return self._store

    @property
    def compiled(self) -> bool:
        return self.state is RepState.COMPILED

    @property
    def path(self) -> str | None:
        """Web-facing path, starting with a slash; None when not routed."""
        return self._path

    @property
    def raw_path(self) -> Path | None:
        """Filesystem path of the output file; None when not written."""
        return self._raw_path

    @property
    def routed(self) -> bool:
        return self._routed

    def assign_route(self, path: str | None, raw_path: Path | None) -> None:
        """Record the rep's paths.  Only the first assignment in a run counts."""
        if self._routed:
            return
        self._path = path
        self._raw_path = raw_path
        self._routed = True

    def begin_run(self) -> None:
        """Forget everything from a previous run."""
        self.reset()
        self.force_outdated = False
        self.written = False
        self.modified = False
        self.created = False
        self._old_bytes = None
        self._routed = False
        self._path = None
        self._raw_path = None

    def reset(self) -> None:
        """Discard a partial compilation attempt."""
        self._store.reset()
        self.state = RepState.PENDING

    def mark_up_to_date(self) -> None:
        """Record that the existing output file is current.

        Up-to-date reps hold no snapshots.  Asking one for its compiled
        content yields ``NotReady``, so the compiler runs its pipeline and
        dependents see the same snapshots as in a full build.
        """
        self.state = RepState.UP_TO_DATE

    def is_outdated(self, site: Site) -> bool:
        """Whether this rep must be recompiled.  See ``is_outdated``."""
        return is_outdated(self, site)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def assigns(self, context: CompilationContext) -> dict[str, Any]:
        """Variables available to filters and layouts for this rep."""
        site = context.site
        last = self._store.last
        if isinstance(last, BinaryContent):
            assigns: dict[str, Any] = {"filename": last.path}
        else:
            assigns = {"content": last.text}
        assigns.update(
            item=self.item,
            item_rep=self,
            items=site.items,
            layouts=site.layouts,
            config=site.config,
            site=site,
        )
        return assigns

    def filter(
        self,
        filter_name: str,
        params: FilterParams | None = None,
        *,
        context: CompilationContext,
    ) -> None:
        """Run the ``last`` content through the named filter.

        The result replaces ``last`` and the rep's kind follows the filter's
        declared output kind.  Until a ``post`` snapshot exists, the result is
        also captured as ``pre``.

        Raises:
            UnknownFilter: If no filter is registered under *filter_name*.
            FilterKindMismatch: If the filter's input kind differs from the
                rep's current kind.
            FilterOutputMissing: If a binary filter wrote no output file.

        """
        klass = context.filters.get(filter_name)

        if klass.from_binary and not self.binary:
            raise CannotUseBinaryFilter(self, filter_name)
        if not klass.from_binary and self.binary:
            raise CannotUseTextualFilter(self, filter_name)

        instance = klass(self.assigns(context), scratch_dir=context.scratch_dir)
        last = self._store.last
        source: str | Path = last.path if isinstance(last, BinaryContent) else last.text

        context.bus.post(FilteringStarted(rep=self, filter_name=filter_name))
        try:
            result = instance.run(source, dict(params or {}))
        finally:
            context.bus.post(FilteringEnded(rep=self, filter_name=filter_name))

        if klass.to_binary:
            output = Path(result) if isinstance(result, (str, Path)) else instance.output_filename
            if not output.is_file():
                raise FilterOutputMissing(filter_name, output)
            self._store.write(LAST, BinaryContent(output))
        else:
            if not isinstance(result, str):
                msg = (
                    f"The {filter_name!r} filter returned {type(result).__name__} "
                    "instead of text."
                )
                raise CompilationError(msg)
            self._store.write(LAST, TextContent(result))

        if not self._store.has(POST):
            self._store.snapshot(PRE)

    def layout(self, layout_identifier: str, *, context: CompilationContext) -> None:
        """Lay out the ``last`` content with the given layout.

        The layout's raw content is rendered by the filter the rules assign
        to it, with this rep's assigns plus ``layout``.  The result replaces
        ``last`` and is captured as ``post``.

        Raises:
            UnknownLayout: If no layout has *layout_identifier*.
            CannotLayoutBinary: If the rep is currently binary.
            CannotDetermineFilter: If no layout rule matches the layout.

        """
        layout = context.site.layout_with_identifier(layout_identifier)

        if self.binary:
            raise CannotLayoutBinary(self)

        if not self._store.has(PRE):
            self._store.snapshot(PRE)

        step = context.rules.resolve_layout_filter(layout)
        if step is None:
            raise CannotDetermineFilter(layout.identifier)
        filter_name, params = step

        klass = context.filters.get(filter_name)
        if klass.from_binary or klass.to_binary:
            raise FilterKindMismatch(self, filter_name)
        instance = klass({**self.assigns(context), "layout": layout})

        # Left on the stack if rendering fails, so the error can name it.
        context.stack.push(layout)
        context.bus.post(FilteringStarted(rep=self, filter_name=filter_name))
        try:
            result = instance.run(layout.raw_content, dict(params))
        finally:
            context.bus.post(FilteringEnded(rep=self, filter_name=filter_name))
        context.stack.pop()

        if not isinstance(result, str):
            msg = (
                f"The {filter_name!r} filter returned {type(result).__name__} "
                f"instead of text for layout {layout.identifier!r}."
            )
            raise CompilationError(msg)

        self._store.write(LAST, TextContent(result))
        self._store.snapshot(POST)

    def snapshot(self, name: str) -> None:
        """Capture the ``last`` content under *name*."""
        self._store.snapshot(name)

    # ------------------------------------------------------------------
    # Compiled content
    # ------------------------------------------------------------------

    def lookup_compiled_content(self, snapshot: str | None = None) -> ContentLookup:
        """Return ``Ready(content)``, or ``NotReady(self)`` before compilation.

        Reps skipped as up to date are not ready either: their snapshots only
        exist once their pipeline has run in this run.  The default snapshot
        is ``pre`` if present, else ``last``.

        Raises:
            MissingSnapshot: If the rep is compiled but *snapshot* was never
                captured.

        """
        if self.state is not RepState.COMPILED:
            return NotReady(self)
        name = snapshot or (PRE if self._store.has(PRE) else LAST)
        try:
            return Ready(self._store.read(name))
        except MissingSnapshot:
            raise MissingSnapshot(name, self) from None

    def compiled_content(self, snapshot: str | None = None) -> str | Path:
        """Compiled text (or output file path, for binary reps).

        Meant to be called from filters and templates.  When the rep is not
        compiled yet this raises ``UnmetDependency``, which makes the compiler
        compile this rep first and retry the caller.
        """
        outcome = self.lookup_compiled_content(snapshot)
        if isinstance(outcome, NotReady):
            raise UnmetDependency(outcome.rep)
        content = outcome.content
        if isinstance(content, BinaryContent):
            return content.path
        return content.text

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def write(self) -> WriteAction | None:
        """Write the compiled content to ``raw_path``.

        Returns the action performed (``create``, ``update`` or
        ``identical``), or None when the rep has no output path.

        """
        raw_path = self._raw_path
        if raw_path is None:
            return None

        raw_path.parent.mkdir(parents=True, exist_ok=True)
        existed = raw_path.is_file()
        self.created = not existed

        last = self._store.last
        if isinstance(last, BinaryContent):
            modified = not existed or not _same_file_content(last.path, raw_path)
            shutil.copyfile(last.path, raw_path)
        else:
            self._old_bytes = raw_path.read_bytes() if existed else None
            new_bytes = last.text.encode("utf-8")
            raw_path.write_bytes(new_bytes)
            modified = self._old_bytes != new_bytes

        self.written = True
        self.modified = modified

        if self.created:
            return "create"
        return "update" if modified else "identical"

    def diff(self, *, bus: NotificationCenter | None = None) -> str | None:
        """Unified diff between the previous and the new output.

        Returns None when no diff is available: binary reps, reps whose
        output did not exist before, unchanged output, or previous output
        that is not valid UTF-8.  The last case is reported on *bus* as
        ``DiffUnavailable``.
        """
        if self.binary or self._old_bytes is None or not self.written:
            return None
        try:
            old = self._old_bytes.decode("utf-8")
        except UnicodeDecodeError:
            if bus is not None:
                bus.post(DiffUnavailable(rep=self, reason="previous output is not UTF-8"))
            return None
        new = self._store.last.text  # type: ignore[union-attr]
        lines = difflib.unified_diff(
            old.splitlines(keepends=True),
            new.splitlines(keepends=True),
            fromfile=f"{self._raw_path} (old)",
            tofile=f"{self._raw_path} (new)",
        )
        result = "".join(lines)
        return result or None

    def __repr__(self) -> str:
        return (
            f"<ItemRep {self.item.identifier} name={self.name} "
            f"binary={self.binary} state={self.state.value} raw_path={self._raw_path}>"
        )


def _same_file_content(new: Path, old: Path) -> bool:
    """Compare two files by size, hashing only when the sizes match."""
    if new.stat().st_size != old.stat().st_size:
        return False
    return _file_digest(new) == _file_digest(old)


def _file_digest(path: Path) -> str:
    digest = hashlib.sha1()  # noqa: S324
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(_HASH_CHUNK), b""):
            digest.update(chunk)
    return digest.hexdigest()
