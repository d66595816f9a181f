"""
Tests for vendor checkout, payment verification and the Stripe webhook.
"""
import json

import pytest

from app.core.logging_config import sanitize_log_data
from app.db.models.notification import Notification
from app.db.models.payment import Payment
from app.db.models.plan import Plan
from app.db.models.subscription import Subscription
from app.db.models.vendor import OnboardingStatus
from app.services import plan_service
from tests.conftest import COMPLETE_PROFILE, make_vendor, vendor_header


@pytest.fixture
def vendor(db):
    return make_vendor(db, status=OnboardingStatus.PROFILE_COMPLETED, plan_code="VENDOR_BASIC",
                       profile=COMPLETE_PROFILE)


def _checkout(client, vendor, **body):
    return client.post("/vendors/onboarding/payment/create-checkout", json=body, headers=vendor_header(vendor))


def _verify(client, vendor, session_id):
    return client.post("/vendors/onboarding/payment/verify", json={"sessionId": session_id},
                       headers=vendor_header(vendor))


def _subscriptions(db, vendor_id):
    db.expire_all()
    return db.query(Subscription).filter(Subscription.vendor_id == vendor_id).all()


def test_create_checkout(client, db, vendor, gateway):
    response = _checkout(client, vendor)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["amount"] == 999
    assert data["currency"] == "BDT"
    assert data["sessionId"] == f"cs_test_{data['paymentId']}"
    assert data["paymentUrl"].startswith("https://checkout.test/")

    payment = db.query(Payment).filter(Payment.id == data["paymentId"]).one()
    assert payment.status == "pending"
    assert payment.gateway == "fake"


def test_checkout_without_plan(client, db):
    vendor = make_vendor(db)
    response = _checkout(client, vendor)
    assert response.status_code == 404
    assert response.json()["code"] == "NO_PLAN_SELECTED"


def test_gateway_failure_marks_payment_failed(client, db, vendor, gateway):
    gateway.fail_create = True
    response = _checkout(client, vendor)

    assert response.status_code == 502
    assert response.json()["code"] == "PAYMENT_GATEWAY_ERROR"
    db.expire_all()
    payment = db.query(Payment).one()
    assert payment.status == "failed"
    assert payment.correlation_id is None


def test_verify_success_activates_subscription(client, db, context, vendor):
    session_id = _checkout(client, vendor).json()["data"]["sessionId"]

    response = _verify(client, vendor, session_id)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "success"
    assert data["subscription"]["planCode"] == "VENDOR_BASIC"
    assert data["subscription"]["status"] == "active"

    subscriptions = _subscriptions(db, vendor.id)
    assert len(subscriptions) == 1

    context.dispatcher.drain()
    assert db.query(Notification).filter(Notification.type == "subscription_activated").count() == 1


def test_verify_twice_is_conflict_and_changes_nothing(client, db, vendor):
    session_id = _checkout(client, vendor).json()["data"]["sessionId"]
    _verify(client, vendor, session_id)

    db.expire_all()
    before = db.query(Payment).one()
    before_state = (before.status, before.processed_at, before.subscription_id)

    second = _verify(client, vendor, session_id)
    assert second.status_code == 409
    assert second.json()["code"] == "PAYMENT_ALREADY_PROCESSED"

    db.expire_all()
    after = db.query(Payment).one()
    assert (after.status, after.processed_at, after.subscription_id) == before_state
    assert len(_subscriptions(db, vendor.id)) == 1


def test_verify_unknown_session(client, vendor):
    response = _verify(client, vendor, "cs_test_missing")
    assert response.status_code == 404
    assert response.json()["code"] == "PAYMENT_NOT_FOUND"


def test_verify_other_vendors_payment(client, db, vendor):
    session_id = _checkout(client, vendor).json()["data"]["sessionId"]
    intruder = make_vendor(db, email="intruder@example.com", status=OnboardingStatus.PLAN_SELECTED,
                           plan_code="VENDOR_BASIC")

    response = _verify(client, intruder, session_id)
    assert response.status_code == 404


def test_unpaid_session_fails_payment(client, db, context, vendor, gateway):
    session_id = _checkout(client, vendor).json()["data"]["sessionId"]
    gateway.states[session_id] = "unpaid"

    response = _verify(client, vendor, session_id)
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "failed"
    assert _subscriptions(db, vendor.id) == []

    context.dispatcher.drain()
    assert db.query(Notification).filter(Notification.type == "payment_failed").count() == 1


def test_open_session_stays_pending(client, vendor, gateway):
    session_id = _checkout(client, vendor).json()["data"]["sessionId"]
    gateway.states[session_id] = "open"

    response = _verify(client, vendor, session_id)
    assert response.json()["data"]["status"] == "pending"

    gateway.states[session_id] = "paid"
    assert _verify(client, vendor, session_id).json()["data"]["status"] == "success"


def test_upgrade_keeps_single_active_subscription(client, db, vendor):
    first = _checkout(client, vendor).json()["data"]["sessionId"]
    _verify(client, vendor, first)

    client.post("/vendors/onboarding/plans/select", json={"planCode": "VENDOR_PREMIUM"},
                headers=vendor_header(vendor))
    second = _checkout(client, vendor).json()["data"]["sessionId"]
    data = _verify(client, vendor, second).json()["data"]
    assert data["subscription"]["planCode"] == "VENDOR_PREMIUM"
    assert data["subscription"]["lastEvent"] == "upgraded"

    subscriptions = _subscriptions(db, vendor.id)
    assert len(subscriptions) == 2
    assert [s.status for s in subscriptions].count("active") == 1


def test_payment_history(client, vendor):
    session_id = _checkout(client, vendor).json()["data"]["sessionId"]
    _verify(client, vendor, session_id)

    data = client.get("/vendors/payments/history", headers=vendor_header(vendor)).json()["data"]
    assert len(data["payments"]) == 1
    assert data["payments"][0]["status"] == "success"
    assert data["activeSubscription"]["planCode"] == "VENDOR_BASIC"


def _webhook(client, session_id, event_type="checkout.session.completed", signature="valid-signature"):
    payload = {
        "id": "evt_1",
        "type": event_type,
        "data": {"object": {"id": session_id, "payment_status": "paid"}},
    }
    return client.post(
        "/payments/webhook",
        content=json.dumps(payload),
        headers={"Stripe-Signature": signature, "Content-Type": "application/json"},
    )


def test_webhook_completes_payment_once(client, db, vendor):
    session_id = _checkout(client, vendor).json()["data"]["sessionId"]

    first = _webhook(client, session_id)
    assert first.status_code == 200
    assert first.json()["data"]["handled"] is True

    duplicate = _webhook(client, session_id)
    assert duplicate.status_code == 200
    assert duplicate.json()["data"]["duplicate"] is True
    assert len(_subscriptions(db, vendor.id)) == 1


def test_webhook_rejects_bad_signature(client, vendor):
    session_id = _checkout(client, vendor).json()["data"]["sessionId"]
    response = _webhook(client, session_id, signature="forged")
    assert response.status_code == 400


def test_webhook_ignores_other_events(client):
    response = _webhook(client, "cs_test_1", event_type="invoice.paid")
    assert response.json()["data"] == {"received": True, "handled": False}


def _set_discount(db, code, **fields):
    plan = db.query(Plan).filter(Plan.code == code).one()
    for name, value in fields.items():
        setattr(plan, name, value)
    db.commit()
    return plan


def test_plan_discount_without_coupon(db):
    plan = _set_discount(db, "VENDOR_FEATURED", discount_percent=20)
    pricing = plan_service.effective_price(plan)
    assert pricing["amount"] == 2499 - 500
    assert pricing["plan_discount"] == 500


def test_coupon_gates_discount(client, db):
    """A plan with a coupon code only gets its discount when the coupon is presented."""
    plan = _set_discount(db, "VENDOR_PREMIUM", discount_amount=1000, coupon_code="SHUBHO")

    assert plan_service.effective_price(plan)["amount"] == 4999
    assert plan_service.effective_price(plan, "shubho")["amount"] == 3999
    assert plan_service.effective_price(plan, "WRONG")["amount"] == 4999

    response = client.post("/vendors/onboarding/coupons/validate",
                           json={"planCode": "VENDOR_PREMIUM", "couponCode": "SHUBHO"})
    data = response.json()["data"]
    assert data["valid"] is True
    assert data["originalPrice"] == 4999
    assert data["discount"] == 1000
    assert data["finalPrice"] == 3999

    invalid = client.post("/vendors/onboarding/coupons/validate",
                          json={"planCode": "VENDOR_PREMIUM", "couponCode": "NOPE"}).json()["data"]
    assert invalid["valid"] is False
    assert invalid["finalPrice"] == 4999


def test_checkout_with_coupon(client, db, gateway):
    _set_discount(db, "VENDOR_BASIC", discount_amount=199, coupon_code="EID")
    vendor = make_vendor(db, status=OnboardingStatus.PLAN_SELECTED, plan_code="VENDOR_BASIC")

    data = _checkout(client, vendor, couponCode="EID").json()["data"]
    assert data["amount"] == 800
    assert gateway.created[-1]["amount"] == 800


def test_fully_discounted_checkout_skips_gateway(client, db, context, gateway):
    _set_discount(db, "VENDOR_BASIC", discount_percent=100, coupon_code="FREEYEAR")
    vendor = make_vendor(db, status=OnboardingStatus.PROFILE_COMPLETED, plan_code="VENDOR_BASIC",
                         profile=COMPLETE_PROFILE)

    response = _checkout(client, vendor, couponCode="FREEYEAR")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["amount"] == 0
    assert data["paymentUrl"] is None
    assert data["status"] == "success"
    assert data["subscription"]["planCode"] == "VENDOR_BASIC"
    assert data["subscription"]["pricePaid"] == 0
    assert gateway.created == []

    db.expire_all()
    payment = db.query(Payment).one()
    assert payment.status == "success"
    assert payment.gateway == "none"
    assert len(_subscriptions(db, vendor.id)) == 1

    context.dispatcher.drain()
    assert db.query(Notification).filter(Notification.type == "subscription_activated").count() == 1

    # The settled payment cannot be verified again
    assert _verify(client, vendor, data["sessionId"]).status_code == 409


def test_checkout_without_body(client, vendor):
    response = client.post("/vendors/onboarding/payment/create-checkout", headers=vendor_header(vendor))
    assert response.status_code == 200
    assert response.json()["data"]["amount"] == 999


def test_gateway_responses_are_redacted_in_logs():
    raw = {"session_id": "cs_test_1", "client_secret": "pi_secret", "payment_status": "paid"}
    assert sanitize_log_data(raw) == {
        "session_id": "cs_test_1",
        "client_secret": "***REDACTED***",
        "payment_status": "paid",
    }
