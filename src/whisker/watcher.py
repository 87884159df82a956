"""File watcher — recompiles the site when its sources change.

Monitors content, layouts, site code, the rules file and the configuration.
Changes inside the output directory (and ``output.diff``) are ignored, so
writing compiled files never triggers another compilation.

Each batch of changes is categorized:

- ``content``  an item source or metadata file
- ``layout``   a layout
- ``lib``      site code (custom filters)
- ``rules``    the rules file
- ``config``   the configuration file
"""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from watchfiles import Change

from whisker.config_loader import CONFIG_FILENAMES

if TYPE_CHECKING:
    from collections.abc import Iterator

    from whisker.config import WhiskerConfig

type ChangeCategory = Literal["content", "layout", "lib", "rules", "config"]


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A file change detected by the watcher.

    Attributes:
        path: Absolute path to the changed file.
        kind: Type of filesystem change.
        category: What kind of site source changed.

    """

    path: Path
    kind: Literal["created", "modified", "deleted"]
    category: ChangeCategory


# Mapping from watchfiles Change enum to our kind literals.
_CHANGE_KIND_MAP: dict[Change, Literal["created", "modified", "deleted"]] = {
    Change.added: "created",
    Change.modified: "modified",
    Change.deleted: "deleted",
}


def categorize_change(path: Path, config: WhiskerConfig) -> ChangeCategory | None:
    """Determine the category of a changed file based on its location.

    Returns None if the file doesn't belong to any watched category.

    """
    try:
        output_rel = path.relative_to(config.output_path)
    except ValueError:
        output_rel = None
    if output_rel is not None:
        return None

    try:
        rel = path.relative_to(config.root)
    except ValueError:
        return None

    parts = rel.parts
    if not parts:
        return None

    if len(parts) == 1:
        if parts[0] in CONFIG_FILENAMES:
            return "config"
        if parts[0] == config.rules_file:
            return "rules"

    if "__pycache__" in parts or parts[-1].startswith("."):
        return None

    first_dir = parts[0]

    if first_dir == config.content_dir:
        return "content"
    if first_dir == config.layouts_dir:
        return "layout"
    if first_dir == config.lib_dir:
        return "lib"

    return None


class SiteWatcher:
    """Watches a site's sources and yields batches of changes.

    Uses watchfiles for efficient filesystem monitoring.  watchfiles runs
    in a background thread; batches are handed to the consumer through a
    queue so ``batches()`` can be iterated from the main thread.

    """

    def __init__(self, config: WhiskerConfig) -> None:
        self._config = config
        self._queue: queue.Queue[list[ChangeEvent]] = queue.Queue()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        """Whether the watcher background thread is active."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start watching for file changes in a background thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._watch_loop,
            name="whisker-watcher",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Signal the watcher to stop and wait for the thread to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            self._thread = None

    def batches(self) -> Iterator[list[ChangeEvent]]:
        """Yield batches of relevant changes as they occur.

        Blocks until a batch is available or the watcher is stopped.

        """
        while self.is_running or not self._queue.empty():
            try:
                yield self._queue.get(timeout=0.5)
            except queue.Empty:
                if not self.is_running:
                    break

    def categorize(self, raw_changes: set[tuple[Change, str]]) -> list[ChangeEvent]:
        """Turn a watchfiles batch into the relevant change events, sorted by path."""
        events: list[ChangeEvent] = []
        for change_type, path_str in sorted(raw_changes, key=lambda c: c[1]):
            path = Path(path_str)
            category = categorize_change(path, self._config)
            if category is None:
                continue
            kind = _CHANGE_KIND_MAP.get(change_type, "modified")
            events.append(ChangeEvent(path=path, kind=kind, category=category))
        return events

    def _watch_loop(self) -> None:
        """Background thread: run watchfiles and push batches to the queue."""
        from watchfiles import watch

        for raw_changes in watch(
            self._config.root,
            stop_event=self._stop_event,
            debounce=300,
            step=100,
        ):
            events = self.categorize(raw_changes)
            if events:
                self._queue.put(events)
