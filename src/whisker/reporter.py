"""Compilation reporter — per-rep status lines and a closing summary.

Subscribes to a run's notification center and prints one line per rep to
stderr::

      create  output/about/index.html  3ms
      update  output/index.html  5ms
   identical  output/blog/index.html  2ms
        skip  output/style.css

Detects ``NO_COLOR`` / ``TERM`` for safe fallback.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

from whisker.observability.events import (
    CompilationDeferred,
    DiffUnavailable,
    RepSkipped,
    RepWritten,
)

if TYPE_CHECKING:
    from whisker.config import WhiskerConfig
    from whisker.core.compiler import CompileResult
    from whisker.core.rep import ItemRep
    from whisker.observability.bus import NotificationCenter
    from whisker.observability.log import EventLog


# ---------------------------------------------------------------------------
# ANSI helpers — respect NO_COLOR (https://no-color.org)
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


_COLOR = _supports_color()

_RESET = "\033[0m" if _COLOR else ""
_BOLD = "\033[1m" if _COLOR else ""
_DIM = "\033[2m" if _COLOR else ""
_GREEN = "\033[32m" if _COLOR else ""
_YELLOW = "\033[33m" if _COLOR else ""
_ORANGE = "\033[38;5;214m" if _COLOR else ""


# ---------------------------------------------------------------------------
# Action badges
# ---------------------------------------------------------------------------

_ACTION_STYLES: dict[str, str] = {
    "create": _GREEN,
    "update": _YELLOW,
    "identical": _DIM,
    "skip": _DIM,
}

_ACTION_WIDTH = max(len(action) for action in _ACTION_STYLES)


def format_action(action: str, path: str, duration_ms: float | None = None) -> str:
    """Return one aligned, colored status line."""
    color = _ACTION_STYLES.get(action, "")
    timing = f"  {_DIM}{duration_ms:.0f}ms{_RESET}" if duration_ms is not None else ""
    return f"  {color}{action:>{_ACTION_WIDTH}}{_RESET}  {path}{timing}"


class Reporter:
    """Prints a line for every written or skipped rep.

    Args:
        config: Site configuration; output paths are shown relative to
            its root.
        show_skipped: Also print reps that were up to date.

    """

    __slots__ = ("_config", "_show_skipped")

    def __init__(self, config: WhiskerConfig, *, show_skipped: bool = False) -> None:
        self._config = config
        self._show_skipped = show_skipped

    def attach(self, bus: NotificationCenter) -> None:
        """Subscribe to the rep events of *bus*."""
        bus.subscribe(RepWritten, self._on_written)
        bus.subscribe(DiffUnavailable, self._on_diff_unavailable)
        if self._show_skipped:
            bus.subscribe(RepSkipped, self._on_skipped)

    def _on_written(self, event: RepWritten) -> None:
        print(
            format_action(event.action, self._display_path(event.rep), event.duration_ms),
            file=sys.stderr,
        )

    def _on_skipped(self, event: RepSkipped) -> None:
        print(format_action("skip", self._display_path(event.rep)), file=sys.stderr)

    def _on_diff_unavailable(self, event: DiffUnavailable) -> None:
        path = self._display_path(event.rep)
        print(f"  {_YELLOW}Diff unavailable{_RESET} for {path}: {event.reason}", file=sys.stderr)

    def _display_path(self, rep: ItemRep) -> str:
        raw_path = rep.raw_path
        if raw_path is None:
            return f"{rep.item.identifier} (not written)"
        try:
            return str(raw_path.relative_to(self._config.root))
        except ValueError:
            return str(raw_path)


def print_header(config: WhiskerConfig, item_count: int, *, load_ms: float = 0.0) -> None:
    """Print the compile header to stderr."""
    from whisker import __version__

    items_label = "item" if item_count == 1 else "items"
    timing = f" {_DIM}in {load_ms:.0f}ms{_RESET}" if load_ms > 0 else ""
    lines = [
        "",
        f"  {_ORANGE}{_BOLD}whisker{_RESET} {_DIM}v{__version__}{_RESET}",
        f"  {_DIM}{'─' * 43}{_RESET}",
        f"  {_DIM}├─{_RESET} {item_count} {items_label} loaded{timing}",
        f"  {_DIM}└─{_RESET} output: {_DIM}{config.output_path}{_RESET}",
        "",
    ]
    print("\n".join(lines), file=sys.stderr)


def print_summary(result: CompileResult) -> None:
    """Print the compilation summary to stderr."""
    compiled = len(result.compiled)
    lines = [
        "",
        "─" * 41,
        f"  Compiled {compiled} rep{'s' if compiled != 1 else ''}",
        f"  {result.created_count} created, {result.modified_count} updated, "
        f"{len(result.skipped)} up to date",
    ]
    deferred = len(result.log.query(event_type=CompilationDeferred))
    if deferred:
        lines.append(f"  {deferred} deferral{'s' if deferred != 1 else ''} waiting on dependencies")
    if result.diff_path is not None:
        lines.append(f"  Diff: {result.diff_path}")
    lines.append(f"  Done in {result.duration_ms:.0f}ms")
    print("\n".join(lines), file=sys.stderr)


def print_event_counts(log: EventLog) -> None:
    """Print how many events of each kind a run posted."""
    lines = ["", f"  {_DIM}Events ({len(log)}){_RESET}"]
    lines.extend(f"  {count:>6}  {name}" for name, count in log.counts().items())
    print("\n".join(lines), file=sys.stderr)
