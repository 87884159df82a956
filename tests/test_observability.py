"""Tests for whisker.observability — events, notification center and event log."""

from pathlib import Path

import pytest

from whisker.core.item import Item
from whisker.observability.bus import NotificationCenter
from whisker.observability.events import (
    CompilationStarted,
    FileCreated,
    FilteringStarted,
    RepWritten,
    now_ns,
)
from whisker.observability.log import EventLog


@pytest.fixture
def rep():
    item = Item.text("/docs/api/", "x")
    item.build_reps()
    return item.rep_named()


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class TestEvents:
    def test_timestamp_defaults_to_now(self, rep) -> None:
        before = now_ns()
        event = CompilationStarted(rep=rep)
        assert event.timestamp_ns >= before

    def test_frozen(self) -> None:
        event = FileCreated(path=Path("/out/a.html"))
        with pytest.raises(AttributeError):
            event.path = Path("/b")  # type: ignore[misc]


# ---------------------------------------------------------------------------
# NotificationCenter
# ---------------------------------------------------------------------------


class TestNotificationCenter:
    def test_delivers_by_type(self, rep) -> None:
        bus = NotificationCenter()
        started: list[object] = []
        created: list[object] = []
        bus.subscribe(CompilationStarted, started.append)
        bus.subscribe(FileCreated, created.append)

        event = CompilationStarted(rep=rep)
        bus.post(event)

        assert started == [event]
        assert created == []

    def test_catch_all(self, rep) -> None:
        bus = NotificationCenter()
        seen: list[object] = []
        bus.subscribe(object, seen.append)
        bus.post(CompilationStarted(rep=rep))
        bus.post(FileCreated(path=Path("/a")))
        assert len(seen) == 2

    def test_registration_order(self, rep) -> None:
        bus = NotificationCenter()
        calls: list[str] = []
        bus.subscribe(CompilationStarted, lambda e: calls.append("first"))
        bus.subscribe(CompilationStarted, lambda e: calls.append("second"))
        bus.post(CompilationStarted(rep=rep))
        assert calls == ["first", "second"]

    def test_return_value_ignored(self, rep) -> None:
        bus = NotificationCenter()
        bus.subscribe(CompilationStarted, lambda e: False)
        bus.post(CompilationStarted(rep=rep))

    def test_unsubscribe(self, rep) -> None:
        bus = NotificationCenter()
        seen: list[object] = []
        bus.subscribe(CompilationStarted, seen.append)
        bus.unsubscribe(CompilationStarted, seen.append)
        bus.unsubscribe(FileCreated, seen.append)
        bus.post(CompilationStarted(rep=rep))
        assert seen == []

    def test_counts_and_clear(self) -> None:
        bus = NotificationCenter()
        bus.subscribe(CompilationStarted, print)
        bus.subscribe(object, print)
        assert bus.subscriber_count(CompilationStarted) == 1
        assert bus.subscriber_count() == 2
        bus.clear()
        assert bus.subscriber_count() == 0

    def test_instances_are_independent(self, rep) -> None:
        first, second = NotificationCenter(), NotificationCenter()
        seen: list[object] = []
        first.subscribe(object, seen.append)
        second.post(CompilationStarted(rep=rep))
        assert seen == []


# ---------------------------------------------------------------------------
# EventLog
# ---------------------------------------------------------------------------


class TestEventLog:
    """Tests for the per-run event log."""

    def test_append_and_len(self, rep) -> None:
        log = EventLog()
        assert len(log) == 0
        log.append(CompilationStarted(rep=rep))
        assert len(log) == 1

    def test_iterates_in_post_order(self) -> None:
        log = EventLog()
        for i in range(3):
            log.append(FileCreated(path=Path(f"/{i}.html")))
        assert [e.path.name for e in log] == ["0.html", "1.html", "2.html"]

    def test_query_by_type(self, rep) -> None:
        log = EventLog()
        log.append(CompilationStarted(rep=rep))
        log.append(FilteringStarted(rep=rep, filter_name="markdown"))
        log.append(CompilationStarted(rep=rep))
        results = log.query(event_type=CompilationStarted)
        assert len(results) == 2
        assert all(isinstance(r, CompilationStarted) for r in results)

    def test_query_by_subject(self, rep) -> None:
        log = EventLog()
        log.append(CompilationStarted(rep=rep))
        log.append(FileCreated(path=Path("/out/blog/index.html")))
        assert len(log.query(subject="/docs/")) == 1
        assert len(log.query(subject="blog")) == 1
        assert log.query(subject="nothing") == []

    def test_query_filters_combine(self, rep) -> None:
        log = EventLog()
        log.append(CompilationStarted(rep=rep))
        log.append(RepWritten(rep=rep, action="create"))
        log.append(FileCreated(path=Path("/out/docs/api/index.html")))
        (event,) = log.query(event_type=RepWritten, subject="/docs/")
        assert event.action == "create"

    def test_counts_most_frequent_first(self, rep) -> None:
        log = EventLog()
        log.append(RepWritten(rep=rep, action="create"))
        log.append(CompilationStarted(rep=rep))
        log.append(CompilationStarted(rep=rep))
        counts = log.counts()
        assert counts == {"CompilationStarted": 2, "RepWritten": 1}
        assert list(counts) == ["CompilationStarted", "RepWritten"]

    def test_empty_counts(self) -> None:
        assert EventLog().counts() == {}
