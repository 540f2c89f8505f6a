"""Tests for the session event bus."""

import logging

from navigraph.session.events import SessionEventBus
from navigraph.session.models import SessionEventType


def test_publish_reaches_subscriber(clock):
    bus = SessionEventBus(clock=clock)
    received = []
    bus.subscribe(SessionEventType.CREATED, received.append)

    bus.publish(SessionEventType.CREATED, "s1", {"title": "x"})

    assert len(received) == 1
    event = received[0]
    assert event.type == SessionEventType.CREATED
    assert event.session_id == "s1"
    assert event.timestamp == clock.now
    assert event.data == {"title": "x"}


def test_failing_handler_does_not_stop_others(caplog):
    bus = SessionEventBus()
    received = []

    def broken(event):
        raise RuntimeError("boom")

    bus.subscribe(SessionEventType.CREATED, broken)
    bus.subscribe(SessionEventType.CREATED, received.append)

    with caplog.at_level(logging.ERROR):
        bus.publish(SessionEventType.CREATED, "s1")

    assert len(received) == 1
    assert "handler failed" in caplog.text


def test_handlers_run_in_registration_order():
    bus = SessionEventBus()
    order = []
    bus.subscribe(SessionEventType.ENDED, lambda e: order.append("first"))
    bus.subscribe(SessionEventType.ENDED, lambda e: order.append("second"))

    bus.emit_ended("s1")

    assert order == ["first", "second"]


def test_duplicate_subscription_is_called_once():
    bus = SessionEventBus()
    received = []
    bus.subscribe(SessionEventType.UPDATED, received.append)
    bus.subscribe(SessionEventType.UPDATED, received.append)

    bus.emit_updated("s1")

    assert len(received) == 1
    assert bus.listener_count(SessionEventType.UPDATED) == 1


def test_publish_without_subscribers_skips_clock():
    calls = []

    def clock():
        calls.append(1)
        return 0

    bus = SessionEventBus(clock=clock)
    bus.publish(SessionEventType.DELETED, "s1")
    assert calls == []


def test_unsubscribe_last_handler_drops_bucket():
    bus = SessionEventBus()
    handler = bus.subscribe(SessionEventType.VIEWED, lambda e: None)
    bus.unsubscribe(SessionEventType.VIEWED, handler)

    assert bus.listener_count(SessionEventType.VIEWED) == 0
    assert SessionEventType.VIEWED not in bus._handlers
    # unknown handler and unknown type are ignored
    bus.unsubscribe(SessionEventType.VIEWED, handler)


def test_events_do_not_cross_types():
    bus = SessionEventBus()
    received = []
    bus.subscribe(SessionEventType.ACTIVATED, received.append)

    bus.emit_created("s1")
    bus.emit_deactivated("s1")
    bus.emit_activated("s1")

    assert [e.type for e in received] == [SessionEventType.ACTIVATED]


def test_clear():
    bus = SessionEventBus()
    received = []
    bus.subscribe(SessionEventType.CREATED, received.append)
    bus.clear()
    bus.emit_created("s1")
    assert received == []
