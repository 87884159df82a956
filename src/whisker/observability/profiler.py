"""Filter profiler — measures how long each filter takes.

Subscribes to ``FilteringStarted`` / ``FilteringEnded`` on a run's
notification center and accumulates wall-clock time per filter name.

Usage::

    profiler = FilterProfiler()
    profiler.attach(bus)
    compiler.run(bus=bus)
    profiler.print_summary()

"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from whisker.observability.events import FilteringEnded, FilteringStarted

if TYPE_CHECKING:
    from whisker.observability.bus import NotificationCenter


@dataclass(slots=True)
class FilterTiming:
    """Accumulated timings for one filter."""

    name: str
    durations_ms: list[float] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.durations_ms)

    @property
    def total_ms(self) -> float:
        return sum(self.durations_ms)

    @property
    def avg_ms(self) -> float:
        return self.total_ms / self.count if self.durations_ms else 0.0

    @property
    def max_ms(self) -> float:
        return max(self.durations_ms, default=0.0)


class FilterProfiler:
    """Aggregates filter durations from filtering events."""

    __slots__ = ("_pending", "_timings")

    def __init__(self) -> None:
        self._pending: dict[tuple[int, str], int] = {}
        self._timings: dict[str, FilterTiming] = {}

    def attach(self, bus: NotificationCenter) -> None:
        """Subscribe to the filtering events of *bus*."""
        bus.subscribe(FilteringStarted, self._on_started)
        bus.subscribe(FilteringEnded, self._on_ended)

    def _on_started(self, event: FilteringStarted) -> None:
        self._pending[(id(event.rep), event.filter_name)] = event.timestamp_ns

    def _on_ended(self, event: FilteringEnded) -> None:
        start = self._pending.pop((id(event.rep), event.filter_name), None)
        if start is None:
            return
        timing = self._timings.setdefault(event.filter_name, FilterTiming(event.filter_name))
        timing.durations_ms.append((event.timestamp_ns - start) / 1_000_000)

    def timings(self) -> list[FilterTiming]:
        """Timings sorted by total time, slowest first."""
        return sorted(self._timings.values(), key=lambda t: t.total_ms, reverse=True)

    def print_summary(self) -> None:
        """Print a per-filter timing table to stderr."""
        timings = self.timings()
        if not timings:
            return
        width = max(len(t.name) for t in timings)
        print("", file=sys.stderr)
        print(
            f"  {'filter':<{width}}  {'count':>5}  {'avg':>8}  {'max':>8}  {'total':>8}",
            file=sys.stderr,
        )
        for t in timings:
            print(
                f"  {t.name:<{width}}  {t.count:>5}  {t.avg_ms:>6.1f}ms  "
                f"{t.max_ms:>6.1f}ms  {t.total_ms:>6.1f}ms",
                file=sys.stderr,
            )
