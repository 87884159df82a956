"""Observability — compilation lifecycle events and their consumers.

- **NotificationCenter**: per-run publish/subscribe bus the compiler posts to
- **EventLog**: record of every event of a run
- **FilterProfiler**: per-filter timing table

Quick Start:
    >>> from whisker.observability import EventLog, NotificationCenter
    >>> bus = NotificationCenter()
    >>> log = EventLog()
    >>> bus.subscribe(object, log.append)

"""

from whisker.observability.bus import NotificationCenter
from whisker.observability.events import (
    CompilationDeferred,
    CompilationEnded,
    CompilationStarted,
    CompilerEvent,
    DiffUnavailable,
    FileCreated,
    FilteringEnded,
    FilteringStarted,
    RepSkipped,
    RepWritten,
    now_ns,
)
from whisker.observability.log import EventLog
from whisker.observability.profiler import FilterProfiler, FilterTiming

__all__ = [
    "CompilationDeferred",
    "CompilationEnded",
    "CompilationStarted",
    "CompilerEvent",
    "DiffUnavailable",
    "EventLog",
    "FileCreated",
    "FilterProfiler",
    "FilterTiming",
    "FilteringEnded",
    "FilteringStarted",
    "NotificationCenter",
    "RepSkipped",
    "RepWritten",
    "now_ns",
]
