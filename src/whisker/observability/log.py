"""Event log — the record of one compilation run.

The compiler subscribes a fresh ``EventLog`` to every run's notification
center and returns it on the ``CompileResult``.  The reporter reads it back
to count deferred reps and, with ``--verbose``, to print how many events of
each kind the run produced.
"""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterator


def _event_subject(event: object) -> str:
    """Identifier or path an event is about, for substring matching."""
    rep = getattr(event, "rep", None)
    if rep is not None:
        return rep.item.identifier
    path = getattr(event, "path", None)
    return str(path) if path is not None else ""


class EventLog:
    """Events of one run, in the order they were posted."""

    __slots__ = ("_events",)

    def __init__(self) -> None:
        self._events: list[Any] = []

    def append(self, event: Any) -> None:
        self._events.append(event)

    def query(
        self,
        *,
        event_type: type | None = None,
        subject: str | None = None,
    ) -> list[Any]:
        """Events matching every given filter, oldest first.

        Args:
            event_type: Only events of this type.
            subject: Only events whose item identifier or file path contains
                this string.

        """
        return [
            event
            for event in self._events
            if (event_type is None or isinstance(event, event_type))
            and (subject is None or subject in _event_subject(event))
        ]

    def counts(self) -> dict[str, int]:
        """Number of events per event class name, most frequent first."""
        return dict(Counter(type(event).__name__ for event in self._events).most_common())

    def __iter__(self) -> Iterator[Any]:
        return iter(self._events)

    def __len__(self) -> int:
        return len(self._events)
