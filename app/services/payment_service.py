"""
Vendor plan payments.

A Payment row is committed before the gateway is called. Verification is
reconciled by the gateway's session id (correlation_id) and claims the row
with a conditional UPDATE, so a second verification of the same id fails
with PaymentAlreadyProcessed and changes nothing.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import (
    Conflict, Forbidden, NotFound, PaymentAlreadyProcessed, PaymentGatewayError,
    PaymentNotFound, ValidationError,
)
from app.core.logging_config import sanitize_log_data
from app.db.models.payment import Payment, PaymentStatus
from app.db.models.vendor import OnboardingStatus, Vendor
from app.events.bus import EventBus, NotificationEvent, NotificationPriority
from app.services import plan_service, subscription_service

logger = logging.getLogger(__name__)

OPEN_STATUSES = (PaymentStatus.INITIATED.value, PaymentStatus.PENDING.value)
# Recorded as the gateway of payments that needed no charge
FREE_GATEWAY = "none"


def create_checkout(
    db: Session,
    gateway,
    bus: EventBus,
    vendor: Vendor,
    success_url: Optional[str] = None,
    cancel_url: Optional[str] = None,
    coupon_code: Optional[str] = None,
) -> Dict:
    """
    Start a checkout for the vendor's selected plan.

    A fully discounted plan never reaches the gateway: the payment is
    settled at once and the subscription activated, publishing the same
    events as a verified payment.

    Returns:
        Dictionary with paymentId, paymentUrl, sessionId, amount, currency,
        plus status and subscription for a free checkout
    """
    if vendor.onboarding_status == OnboardingStatus.SUSPENDED.value:
        raise Forbidden("Suspended vendors cannot purchase plans")

    plan = vendor.plan
    if plan is None:
        raise NotFound("No plan selected", code="NO_PLAN_SELECTED")

    pricing = plan_service.effective_price(plan, coupon_code)
    free = pricing["amount"] <= 0

    payment = Payment(
        vendor_id=vendor.id,
        plan_id=plan.id,
        amount=pricing["amount"],
        currency=plan.currency,
        gateway=FREE_GATEWAY if free else gateway.name,
        status=PaymentStatus.INITIATED.value,
        raw_response={"plan_code": plan.code, "coupon_code": coupon_code, **pricing},
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)

    logger.info(
        f"Payment initiated: payment_id={payment.id}, vendor_id={vendor.id}, "
        f"plan={plan.code}, amount={payment.amount} {payment.currency}"
    )

    if free:
        return _settle_free(db, gateway, bus, payment)

    try:
        session = gateway.create_checkout_session(
            payment_id=payment.id,
            vendor_id=vendor.id,
            vendor_email=vendor.email,
            plan_code=plan.code,
            plan_name=plan.name,
            amount=payment.amount,
            currency=payment.currency,
            success_url=success_url,
            cancel_url=cancel_url,
        )
    except PaymentGatewayError as e:
        payment.status = PaymentStatus.FAILED.value
        payment.raw_response = {**(payment.raw_response or {}), "error": e.message}
        db.commit()
        raise

    payment.correlation_id = session["session_id"]
    payment.status = PaymentStatus.PENDING.value
    db.commit()

    return {
        "paymentId": payment.id,
        "paymentUrl": session["url"],
        "sessionId": session["session_id"],
        "amount": payment.amount,
        "currency": payment.currency,
    }


def _settle_free(db: Session, gateway, bus: EventBus, payment: Payment) -> Dict:
    payment.correlation_id = f"free_{payment.id}"
    payment.status = PaymentStatus.PENDING.value
    db.commit()

    result = verify_payment(
        db, gateway, bus, payment.correlation_id, paid=True, raw={"settled": "zero_amount"}
    )
    logger.info(f"Zero-amount checkout settled without gateway: payment_id={payment.id}")
    return {
        "paymentId": payment.id,
        "paymentUrl": None,
        "sessionId": payment.correlation_id,
        "amount": payment.amount,
        "currency": payment.currency,
        "status": result["status"],
        "subscription": result["subscription"],
    }


def _get_by_correlation_id(db: Session, correlation_id: str, vendor_id: Optional[int] = None) -> Payment:
    payment = db.query(Payment).filter(Payment.correlation_id == correlation_id).first()
    if payment is None or (vendor_id is not None and payment.vendor_id != vendor_id):
        raise PaymentNotFound("Payment not found")
    if payment.status not in OPEN_STATUSES:
        raise PaymentAlreadyProcessed("Payment already processed")
    return payment


def _claim(db: Session, payment: Payment, status: PaymentStatus, raw: Optional[dict]) -> None:
    """Atomically move an open payment to a final status."""
    now = datetime.now(timezone.utc)
    claimed = (
        db.query(Payment)
        .filter(Payment.id == payment.id, Payment.status.in_(OPEN_STATUSES))
        .update(
            {
                Payment.status: status.value,
                Payment.processed_at: now,
                Payment.raw_response: {**(payment.raw_response or {}), **(raw or {}), "processedAt": now.isoformat()},
            },
            synchronize_session=False,
        )
    )
    if claimed == 0:
        db.rollback()
        raise PaymentAlreadyProcessed("Payment already processed")


def verify_payment(
    db: Session,
    gateway,
    bus: EventBus,
    correlation_id: str,
    paid: Optional[bool] = None,
    raw: Optional[dict] = None,
    vendor_id: Optional[int] = None,
) -> Dict:
    """
    Reconcile a gateway session with its pending payment.

    When `paid` is None the gateway is asked for the session state. A paid
    session activates exactly one subscription for the vendor. When
    `vendor_id` is given, payments of other vendors are reported as not found.

    Raises:
        PaymentNotFound: unknown correlation id
        PaymentAlreadyProcessed: the payment already reached a final status
    """
    if not correlation_id:
        raise ValidationError("sessionId is required")

    payment = _get_by_correlation_id(db, correlation_id, vendor_id)

    if paid is None:
        result = gateway.retrieve_session(correlation_id)
        raw = result["raw"]
        logger.debug(f"Gateway session state for payment_id={payment.id}: {result['state']} {sanitize_log_data(raw)}")
        if result["state"] == "open":
            logger.info(f"Payment still open at gateway: payment_id={payment.id}")
            return {"paymentId": payment.id, "status": payment.status}
        paid = result["state"] == "paid"

    if not paid:
        return _fail(db, bus, payment, raw)

    _claim(db, payment, PaymentStatus.SUCCESS, raw)
    try:
        subscription, event_type = subscription_service.activate_subscription(
            db, payment.vendor_id, payment.plan, price_paid=payment.amount
        )
        db.query(Payment).filter(Payment.id == payment.id).update(
            {Payment.subscription_id: subscription.id}, synchronize_session=False
        )
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Concurrent subscription activation for vendor_id={payment.vendor_id}: {e}")
        raise Conflict("Subscription is being activated by another request") from e

    db.refresh(payment)
    logger.info(
        f"Payment successful: payment_id={payment.id}, subscription_id={subscription.id}, "
        f"vendor_id={payment.vendor_id}, plan={payment.plan.code}"
    )

    bus.publish(subscription_service.build_event(subscription, event_type))
    bus.publish(NotificationEvent(
        recipient_type="vendor",
        recipient_id=payment.vendor_id,
        type="subscription_activated",
        metadata={"planCode": payment.plan.code, "planName": payment.plan.name, "paymentId": payment.id},
        priority=NotificationPriority.HIGH,
    ))

    return {
        "paymentId": payment.id,
        "status": payment.status,
        "subscription": subscription_service.serialize_subscription(subscription),
    }


def _fail(db: Session, bus: EventBus, payment: Payment, raw: Optional[dict]) -> Dict:
    _claim(db, payment, PaymentStatus.FAILED, raw)
    db.commit()
    db.refresh(payment)

    logger.warning(f"Payment failed: payment_id={payment.id}, vendor_id={payment.vendor_id}")
    bus.publish(NotificationEvent(
        recipient_type="vendor",
        recipient_id=payment.vendor_id,
        type="payment_failed",
        metadata={"paymentId": payment.id, "gateway": payment.gateway, "amount": payment.amount},
        priority=NotificationPriority.HIGH,
    ))
    return {"paymentId": payment.id, "status": payment.status}


def handle_webhook(db: Session, gateway, bus: EventBus, body: bytes, signature: Optional[str]) -> Dict:
    """Route a verified Stripe webhook into payment verification."""
    try:
        event = gateway.verify_webhook(body, signature)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    event_type = event["type"]
    if event_type not in ("checkout.session.completed", "checkout.session.expired",
                          "checkout.session.async_payment_failed"):
        return {"received": True, "handled": False}

    session = event["data"]["object"]
    session_id = session.get("id")
    paid = event_type == "checkout.session.completed" and session.get("payment_status") == "paid"
    raw = {"session_id": session_id, "event_id": event["id"], "payment_status": session.get("payment_status")}

    try:
        verify_payment(db, gateway, bus, session_id, paid=paid, raw=raw)
    except PaymentAlreadyProcessed:
        logger.info(f"Duplicate webhook for session {session_id} acknowledged")
        return {"received": True, "handled": False, "duplicate": True}
    except PaymentNotFound:
        logger.warning(f"Webhook for unknown session {session_id} ignored")
        return {"received": True, "handled": False}

    return {"received": True, "handled": True}


def payment_history(db: Session, vendor_id: int) -> List[Dict]:
    payments = (
        db.query(Payment)
        .filter(Payment.vendor_id == vendor_id)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .all()
    )
    return [serialize_payment(p) for p in payments]


def serialize_payment(payment: Payment) -> Dict:
    return {
        "id": payment.id,
        "planCode": payment.plan.code if payment.plan else None,
        "amount": payment.amount,
        "currency": payment.currency,
        "gateway": payment.gateway,
        "status": payment.status,
        "sessionId": payment.correlation_id,
        "subscriptionId": payment.subscription_id,
        "createdAt": payment.created_at.isoformat() if payment.created_at else None,
        "processedAt": payment.processed_at.isoformat() if payment.processed_at else None,
    }
