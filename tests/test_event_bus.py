"""
Tests for the typed event bus.
"""
from datetime import datetime, timezone

import pytest

from app.events.bus import EventBus, NotificationEvent, SubscriptionEvent, SubscriptionSnapshot


def _subscription_event(event_type="activated"):
    now = datetime.now(timezone.utc)
    return SubscriptionEvent(
        vendor_id=7,
        event_type=event_type,
        subscription=SubscriptionSnapshot(
            id=1, plan_code="VENDOR_BASIC", plan_name="Basic Presence",
            status="active", start_at=now, end_at=now,
        ),
    )


def test_handlers_receive_only_their_variant():
    bus = EventBus()
    notifications, subscriptions = [], []
    bus.subscribe(NotificationEvent, notifications.append)
    bus.subscribe(SubscriptionEvent, subscriptions.append)

    bus.publish(NotificationEvent("user", 1, "report_reviewed"))
    bus.publish(_subscription_event())

    assert len(notifications) == 1
    assert len(subscriptions) == 1
    assert subscriptions[0].subscription.plan_code == "VENDOR_BASIC"


def test_handlers_run_in_registration_order():
    bus = EventBus()
    calls = []
    bus.subscribe(NotificationEvent, lambda e: calls.append("first"))
    bus.subscribe(NotificationEvent, lambda e: calls.append("second"))

    bus.publish(NotificationEvent("user", 1, "report_reviewed"))

    assert calls == ["first", "second"]


def test_failing_handler_does_not_reach_publisher_or_others():
    """A handler that raises is skipped; later handlers still run."""
    bus = EventBus()
    calls = []

    def broken(event):
        raise RuntimeError("boom")

    bus.subscribe(NotificationEvent, broken)
    bus.subscribe(NotificationEvent, calls.append)

    delivered = bus.publish(NotificationEvent("vendor", 3, "vendor_approved"))

    assert delivered == 1
    assert len(calls) == 1


def test_unknown_event_types_are_rejected():
    bus = EventBus()
    with pytest.raises(TypeError):
        bus.subscribe(dict, lambda e: None)
    with pytest.raises(TypeError):
        bus.publish({"type": "vendor_approved"})


def test_unsubscribe():
    bus = EventBus()
    calls = []
    bus.subscribe(NotificationEvent, calls.append)
    bus.unsubscribe(NotificationEvent, calls.append)

    assert bus.handler_count(NotificationEvent) == 0
    assert bus.publish(NotificationEvent("user", 1, "report_reviewed")) == 0
    assert calls == []
