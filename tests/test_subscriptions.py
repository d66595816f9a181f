"""
Tests for subscription expiry: lapsed rows stop counting as active, the
sweep marks them expired and the vendor hears about it.
"""
from datetime import datetime, timedelta, timezone

from app.db.models.notification import Notification
from app.db.models.plan import Plan
from app.db.models.subscription import Subscription
from app.db.models.vendor import OnboardingStatus
from app.services import subscription_service
from tests.conftest import COMPLETE_PROFILE, make_vendor, vendor_header


def _subscribe(db, vendor, plan_code="VENDOR_BASIC", started_days_ago=0):
    plan = db.query(Plan).filter(Plan.code == plan_code).one()
    start = datetime.now(timezone.utc) - timedelta(days=started_days_ago)
    subscription, _ = subscription_service.activate_subscription(db, vendor.id, plan, now=start)
    db.commit()
    return subscription


def _approved(db):
    return make_vendor(db, status=OnboardingStatus.APPROVED, plan_code="VENDOR_BASIC", profile=COMPLETE_PROFILE)


def test_lapsed_subscription_is_not_active(db):
    vendor = _approved(db)
    _subscribe(db, vendor, started_days_ago=400)

    assert subscription_service.get_active_subscription(db, vendor.id) is None


def test_current_subscription_is_active(db):
    vendor = _approved(db)
    subscription = _subscribe(db, vendor, started_days_ago=10)

    assert subscription_service.get_active_subscription(db, vendor.id).id == subscription.id
    assert subscription_service.expire_subscriptions(db) == 0


def test_sweep_expires_and_notifies(db, context):
    lapsed_vendor = _approved(db)
    current_vendor = make_vendor(db, email="current@example.com", status=OnboardingStatus.APPROVED,
                                 plan_code="VENDOR_BASIC", profile=COMPLETE_PROFILE)
    lapsed = _subscribe(db, lapsed_vendor, started_days_ago=366)
    current = _subscribe(db, current_vendor, started_days_ago=1)

    assert subscription_service.expire_subscriptions(db, context.bus) == 1

    db.expire_all()
    assert db.get(Subscription, lapsed.id).status == "expired"
    assert db.get(Subscription, lapsed.id).last_event == "expired"
    assert db.get(Subscription, current.id).status == "active"

    context.dispatcher.drain()
    notification = db.query(Notification).filter(Notification.type == "subscription_changed").one()
    assert notification.recipient_id == lapsed_vendor.id
    assert notification.extra["eventType"] == "expired"

    # A second sweep finds nothing left to expire
    assert subscription_service.expire_subscriptions(db, context.bus) == 0


def test_renewal_after_lapse_replaces_expired_row(db):
    vendor = _approved(db)
    lapsed = _subscribe(db, vendor, started_days_ago=400)

    plan = db.query(Plan).filter(Plan.code == "VENDOR_BASIC").one()
    renewed, event_type = subscription_service.activate_subscription(db, vendor.id, plan)
    db.commit()

    assert event_type.value == "created"
    db.expire_all()
    assert db.get(Subscription, lapsed.id).status == "expired"
    assert subscription_service.get_active_subscription(db, vendor.id).id == renewed.id


def test_admin_can_run_sweep(client, db, admin_headers):
    vendor = _approved(db)
    _subscribe(db, vendor, started_days_ago=400)

    response = client.post("/vendor-admin/subscriptions/expire", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"] == {"expired": 1}

    history = client.get("/vendors/payments/history", headers=vendor_header(vendor)).json()["data"]
    assert history["activeSubscription"] is None
