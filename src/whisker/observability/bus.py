"""Notification center — publish/subscribe channel for lifecycle events.

Each compilation run owns one ``NotificationCenter``; nothing is shared
between runs.  Subscribers are observers only: their return values are
ignored and the compiler never depends on what they do.

Usage::

    bus = NotificationCenter()
    bus.subscribe(RepWritten, lambda event: print(event.rep.raw_path))
    bus.post(RepWritten(rep=rep, action="create"))

"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

type Subscriber = Callable[[Any], object]


class NotificationCenter:
    """Routes posted events to the subscribers registered for their type.

    A subscriber registered for ``object`` receives every event.
    Subscribers for one event type are called in registration order.
    """

    __slots__ = ("_subscribers",)

    def __init__(self) -> None:
        self._subscribers: dict[type, list[Subscriber]] = {}

    def subscribe(self, event_type: type, subscriber: Subscriber) -> None:
        """Call *subscriber* for every posted event of *event_type*."""
        self._subscribers.setdefault(event_type, []).append(subscriber)

    def unsubscribe(self, event_type: type, subscriber: Subscriber) -> None:
        """Remove a subscriber; unknown subscribers are ignored."""
        subscribers = self._subscribers.get(event_type, [])
        if subscriber in subscribers:
            subscribers.remove(subscriber)

    def post(self, event: object) -> None:
        """Deliver *event* to its type's subscribers, then to catch-all ones."""
        for subscriber in tuple(self._subscribers.get(type(event), ())):
            subscriber(event)
        if type(event) is not object:
            for subscriber in tuple(self._subscribers.get(object, ())):
                subscriber(event)

    def clear(self) -> None:
        """Drop every subscription."""
        self._subscribers.clear()

    def subscriber_count(self, event_type: type | None = None) -> int:
        if event_type is not None:
            return len(self._subscribers.get(event_type, ()))
        return sum(len(subs) for subs in self._subscribers.values())
