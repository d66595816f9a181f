"""
Tests for priority queueing, retries and draining in the notification dispatcher.
"""
from datetime import datetime, timezone

import pytest

from app.db.models.notification import Notification
from app.events.bus import (
    EventBus,
    NotificationEvent,
    NotificationPriority,
    SubscriptionEvent,
    SubscriptionSnapshot,
)
from app.services.notification_dispatcher import NotificationDispatcher
from tests.conftest import FakeEmailSender, TestSessionLocal, make_user, make_vendor


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def email():
    return FakeEmailSender()


@pytest.fixture
def dispatcher(db, email, clock):
    bus = EventBus()
    dispatcher = NotificationDispatcher(TestSessionLocal, email, clock=clock)
    dispatcher.register(bus)
    dispatcher.bus = bus
    return dispatcher


def _rows(db):
    db.expire_all()
    return db.query(Notification).order_by(Notification.id).all()


def test_immediate_is_delivered_inline(db, dispatcher, email):
    vendor = make_vendor(db)

    dispatcher.bus.publish(NotificationEvent(
        "vendor", vendor.id, "vendor_suspended",
        {"businessName": vendor.business_name, "reason": "Fraud"},
        NotificationPriority.IMMEDIATE,
    ))

    assert dispatcher.queue_length == 0
    rows = _rows(db)
    assert len(rows) == 1
    assert rows[0].priority == "IMMEDIATE"
    assert "Fraud" in rows[0].body
    assert email.sent[0]["to"] == vendor.email


def test_immediate_does_not_flush_the_queue(db, dispatcher, email):
    """Queued LOW and HIGH items wait for the loop while an IMMEDIATE one goes out."""
    vendor = make_vendor(db)
    user = make_user(db)

    dispatcher.bus.publish(NotificationEvent("user", user.id, "report_reviewed", priority=NotificationPriority.LOW))
    dispatcher.bus.publish(NotificationEvent(
        "user", user.id, "booking_confirmed", {"serviceTitle": "Mehndi Night"}, NotificationPriority.HIGH,
    ))
    dispatcher.bus.publish(NotificationEvent(
        "vendor", vendor.id, "vendor_suspended",
        {"businessName": vendor.business_name, "reason": "Fraud"},
        NotificationPriority.IMMEDIATE,
    ))

    assert dispatcher.queue_length == 2
    assert [r.type for r in _rows(db)] == ["vendor_suspended"]
    assert [m["to"] for m in email.sent] == [vendor.email]


def test_failed_immediate_is_queued_for_retry(db, dispatcher, email, clock):
    vendor = make_vendor(db)
    email.failures_left = 1

    dispatcher.bus.publish(NotificationEvent(
        "vendor", vendor.id, "vendor_suspended", {"businessName": "Shapla", "reason": "Fraud"},
        NotificationPriority.IMMEDIATE,
    ))
    assert dispatcher.queue_length == 1

    clock.advance(1)
    assert dispatcher.process_queue() == 1
    assert len(email.sent) == 1
    assert len(_rows(db)) == 1


def test_queued_notifications_are_processed_by_priority(db, dispatcher):
    """LOW is queued first but HIGH is delivered first."""
    user = make_user(db)

    dispatcher.bus.publish(NotificationEvent("user", user.id, "report_reviewed", priority=NotificationPriority.LOW))
    dispatcher.bus.publish(NotificationEvent(
        "user", user.id, "booking_confirmed", {"serviceTitle": "Mehndi Night"}, NotificationPriority.HIGH,
    ))
    assert dispatcher.queue_length == 2

    assert dispatcher.process_queue() == 2

    rows = _rows(db)
    assert [r.type for r in rows] == ["booking_confirmed", "report_reviewed"]


def test_default_priority_comes_from_type(db, dispatcher):
    vendor = make_vendor(db)
    dispatcher.bus.publish(NotificationEvent("vendor", vendor.id, "vendor_suspended", {"businessName": "X"}))
    dispatcher.bus.publish(NotificationEvent("vendor", vendor.id, "review_received", {"rating": 5}))

    assert dispatcher.queue_length == 1
    dispatcher.process_queue()
    assert [r.priority for r in _rows(db)] == ["IMMEDIATE", "LOW"]


def test_low_priority_skips_email(db, dispatcher, email):
    user = make_user(db)
    dispatcher.bus.publish(NotificationEvent("user", user.id, "report_reviewed", priority=NotificationPriority.LOW))
    dispatcher.process_queue()

    assert len(_rows(db)) == 1
    assert email.sent == []


def test_failed_delivery_is_retried_after_delay(db, dispatcher, email, clock):
    vendor = make_vendor(db)
    email.failures_left = 1

    dispatcher.bus.publish(NotificationEvent(
        "vendor", vendor.id, "vendor_approved", {"businessName": "Shapla"}, NotificationPriority.HIGH,
    ))
    assert dispatcher.process_queue() == 0
    assert dispatcher.queue_length == 1

    # Not due yet
    assert dispatcher.process_queue() == 0
    assert dispatcher.queue_length == 1

    clock.advance(5)
    assert dispatcher.process_queue() == 1
    assert dispatcher.queue_length == 0
    assert len(email.sent) == 1
    # The in-app row written on the first attempt is not duplicated
    assert len(_rows(db)) == 1


def test_gives_up_after_retry_attempts(db, dispatcher, email, clock):
    vendor = make_vendor(db)
    email.failures_left = 10

    dispatcher.bus.publish(NotificationEvent(
        "vendor", vendor.id, "vendor_approved", {"businessName": "Shapla"}, NotificationPriority.HIGH,
    ))
    for _ in range(3):
        dispatcher.process_queue()
        clock.advance(5)

    assert dispatcher.queue_length == 0
    assert email.sent == []


def test_drain_ignores_retry_schedule(db, dispatcher, email):
    vendor = make_vendor(db)
    email.failures_left = 1
    dispatcher.bus.publish(NotificationEvent(
        "vendor", vendor.id, "payment_failed", {"amount": 999}, NotificationPriority.HIGH,
    ))

    dispatcher.drain()

    assert dispatcher.queue_length == 0
    assert len(email.sent) == 1


def test_subscription_changes_are_notified(db, dispatcher):
    vendor = make_vendor(db)
    now = datetime.now(timezone.utc)
    snapshot = SubscriptionSnapshot(1, "VENDOR_PREMIUM", "Premium Showcase", "active", now, now)

    dispatcher.bus.publish(SubscriptionEvent(vendor.id, "activated", snapshot))
    dispatcher.bus.publish(SubscriptionEvent(vendor.id, "upgraded", snapshot))
    dispatcher.drain()

    rows = _rows(db)
    assert len(rows) == 1
    assert rows[0].type == "subscription_changed"
    assert "Premium Showcase" in rows[0].body


def test_unregister_stops_listening(db, dispatcher):
    dispatcher.unregister(dispatcher.bus)
    dispatcher.bus.publish(NotificationEvent("user", 1, "report_reviewed"))
    assert dispatcher.queue_length == 0
