"""Compilation lifecycle events.

Posted on a run's ``NotificationCenter`` by the compiler and by reps while
their pipelines execute.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from whisker._types import WriteAction
    from whisker.core.rep import ItemRep


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()


# ---------------------------------------------------------------------------
# Rep compilation events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CompilationStarted:
    """An attempt to compile a rep began.

    Attributes:
        rep: The rep being compiled.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    rep: ItemRep
    timestamp_ns: int = field(default_factory=now_ns)


@dataclass(frozen=True, slots=True)
class CompilationEnded:
    """A rep finished compiling successfully."""

    rep: ItemRep
    timestamp_ns: int = field(default_factory=now_ns)


@dataclass(frozen=True, slots=True)
class CompilationDeferred:
    """A compilation attempt was discarded because of an unmet dependency.

    Attributes:
        rep: The rep whose attempt was discarded.
        dependency: The rep it is waiting for.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    rep: ItemRep
    dependency: ItemRep
    timestamp_ns: int = field(default_factory=now_ns)


# ---------------------------------------------------------------------------
# Filter events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FilteringStarted:
    """A filter (or layout filter) started running over a rep's content."""

    rep: ItemRep
    filter_name: str
    timestamp_ns: int = field(default_factory=now_ns)


@dataclass(frozen=True, slots=True)
class FilteringEnded:
    """A filter finished running (successfully or not)."""

    rep: ItemRep
    filter_name: str
    timestamp_ns: int = field(default_factory=now_ns)


# ---------------------------------------------------------------------------
# Output events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileCreated:
    """A file that did not exist before was written."""

    path: Path
    timestamp_ns: int = field(default_factory=now_ns)


@dataclass(frozen=True, slots=True)
class RepWritten:
    """A rep's compiled content was written to its output file.

    Attributes:
        rep: The written rep.
        action: ``create``, ``update`` or ``identical``.
        duration_ms: Time spent compiling and writing the rep.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    rep: ItemRep
    action: WriteAction
    duration_ms: float = 0.0
    timestamp_ns: int = field(default_factory=now_ns)


@dataclass(frozen=True, slots=True)
class RepSkipped:
    """A rep was up to date and not recompiled."""

    rep: ItemRep
    timestamp_ns: int = field(default_factory=now_ns)


@dataclass(frozen=True, slots=True)
class DiffUnavailable:
    """No diff could be produced for a written rep."""

    rep: ItemRep
    reason: str
    timestamp_ns: int = field(default_factory=now_ns)


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

type CompilerEvent = (
    CompilationStarted
    | CompilationEnded
    | CompilationDeferred
    | FilteringStarted
    | FilteringEnded
    | FileCreated
    | RepWritten
    | RepSkipped
    | DiffUnavailable
)
