from __future__ import annotations

from mednexus_dashboard.dispatcher import EventDispatcher
from mednexus_dashboard.models import CaseQueued, EventType


def test_publish_wraps_payload_in_envelope(dispatcher, clock, events):
    event = dispatcher.publish(CaseQueued(case_id="c1"))
    assert events == [event]
    assert event.type is EventType.CASE_QUEUED
    assert event.data == CaseQueued(case_id="c1")
    assert event.timestamp == clock.now
    assert event.to_dict() == {
        "type": "case_queued",
        "data": {"case_id": "c1"},
        "timestamp": clock.now.isoformat(),
    }


def test_failing_subscriber_does_not_block_others(dispatcher):
    received = []

    def broken(event):
        raise RuntimeError("subscriber bug")

    dispatcher.subscribe(broken)
    dispatcher.subscribe(received.append)
    dispatcher.publish(CaseQueued(case_id="c1"))
    assert [e.data.case_id for e in received] == ["c1"]


def test_delivery_follows_registration_order():
    dispatcher = EventDispatcher()
    order = []
    dispatcher.subscribe(lambda e: order.append("first"))
    dispatcher.subscribe(lambda e: order.append("second"))
    dispatcher.publish(CaseQueued(case_id="c1"))
    assert order == ["first", "second"]


def test_unsubscribe_is_idempotent():
    dispatcher = EventDispatcher()
    received = []
    unsubscribe = dispatcher.subscribe(received.append)
    unsubscribe()
    unsubscribe()
    dispatcher.publish(CaseQueued(case_id="c1"))
    assert received == []
    assert dispatcher.subscriber_count == 0


def test_unsubscribing_during_publish_keeps_snapshot():
    dispatcher = EventDispatcher()
    received = []
    handles = {}

    def one_shot(event):
        handles["first"]()
        received.append(("first", event.data.case_id))

    handles["first"] = dispatcher.subscribe(one_shot)
    dispatcher.subscribe(lambda e: received.append(("second", e.data.case_id)))

    dispatcher.publish(CaseQueued(case_id="a"))
    dispatcher.publish(CaseQueued(case_id="b"))
    assert received == [("first", "a"), ("second", "a"), ("second", "b")]


def test_same_callback_subscribed_twice_is_called_twice():
    dispatcher = EventDispatcher()
    received = []
    first = dispatcher.subscribe(received.append)
    dispatcher.subscribe(received.append)
    dispatcher.publish(CaseQueued(case_id="x"))
    assert len(received) == 2
    first()
    dispatcher.publish(CaseQueued(case_id="y"))
    assert len(received) == 3
