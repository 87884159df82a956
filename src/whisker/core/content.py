"""Content variants and the per-rep snapshot store.

A rep's content is either a text buffer or a reference to a file on disk.
Both are frozen dataclasses so a captured snapshot can never be mutated
through another slot.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from whisker._errors import MissingSnapshot

RAW = "raw"
PRE = "pre"
POST = "post"
LAST = "last"


@dataclass(frozen=True, slots=True)
class TextContent:
    """Textual content held in memory."""

    text: str

    binary = False


@dataclass(frozen=True, slots=True)
class BinaryContent:
    """Binary content, referenced by the path of the file holding it."""

    path: Path

    binary = True


type Content = TextContent | BinaryContent


class SnapshotStore:
    """Named content slots for one rep.

    ``last`` always holds the most recently produced content; every other
    slot is written explicitly and stays frozen until written again.

    Args:
        initial: The item's raw content.

    """

    __slots__ = ("_initial", "_slots")

    def __init__(self, initial: Content) -> None:
        self._initial = initial
        self._slots: dict[str, Content] = {}
        self.reset()

    def reset(self) -> None:
        """Drop every snapshot and start over from the raw content."""
        self._slots = {RAW: self._initial, LAST: self._initial}
        if isinstance(self._initial, TextContent):
            self._slots[PRE] = self._initial

    @property
    def last(self) -> Content:
        """The most recently produced content."""
        return self._slots[LAST]

    @property
    def binary(self) -> bool:
        """Whether ``last`` references a file rather than text."""
        return self.last.binary

    def write(self, slot: str, value: Content) -> None:
        """Store *value* in *slot* and in ``last``."""
        self._slots[slot] = value
        self._slots[LAST] = value

    def read(self, slot: str) -> Content:
        """Return the content stored in *slot*.

        Raises:
            MissingSnapshot: If *slot* was never written.

        """
        try:
            return self._slots[slot]
        except KeyError:
            raise MissingSnapshot(slot) from None

    def snapshot(self, name: str) -> None:
        """Copy ``last`` into the *name* slot."""
        self._slots[name] = self._slots[LAST]

    def has(self, slot: str) -> bool:
        return slot in self._slots

    def names(self) -> tuple[str, ...]:
        return tuple(self._slots)

    def __repr__(self) -> str:
        return f"SnapshotStore(slots={list(self._slots)!r}, binary={self.binary})"
