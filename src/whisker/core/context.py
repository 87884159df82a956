"""Per-run compilation context.

Everything a rep needs while its pipeline runs is threaded through a
``CompilationContext`` instead of living in module globals: the site, the
filter registry, the notification bus and the compilation stack.  A fresh
context is built for every run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from whisker.core.item import Item, Layout
    from whisker.core.site import Site
    from whisker.filters.base import FilterRegistry
    from whisker.observability.bus import NotificationCenter
    from whisker.rules.resolver import RuleSet


@dataclass(slots=True)
class CompilationStack:
    """Items and layouts currently being processed, innermost last.

    Used for diagnostics: a failing filter can report which item was being
    compiled through which chain of layouts.
    """

    _entries: list[Item | Layout] = field(default_factory=list)

    def push(self, entry: Item | Layout) -> None:
        self._entries.append(entry)

    def pop(self) -> Item | Layout:
        return self._entries.pop()

    def clear(self) -> None:
        self._entries.clear()

    def describe(self) -> str:
        """Render the stack as ``/a/ -> /default/`` for error messages."""
        return " -> ".join(entry.identifier for entry in self._entries)

    def __iter__(self) -> Iterator[Item | Layout]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True, slots=True)
class CompilationContext:
    """Collaborators shared by every rep during one compilation run.

    ``scratch_dir`` is where binary filters write their output; the compiler
    removes it when the run ends.
    """

    site: Site
    filters: FilterRegistry
    bus: NotificationCenter
    stack: CompilationStack = field(default_factory=CompilationStack)
    scratch_dir: Path | None = None

    @property
    def rules(self) -> RuleSet:
        return self.site.rules
