"""
Vendor subscription service.

A vendor has at most one active subscription. Activation deactivates the
previous active row and inserts the new one in the caller's transaction;
the partial unique index on subscriptions backs this up across processes.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from app.db.models.plan import Plan
from app.db.models.subscription import Subscription, SubscriptionStatus, SubscriptionEventType
from app.events.bus import EventBus, SubscriptionEvent, SubscriptionSnapshot

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def is_lapsed(subscription: Subscription, now: Optional[datetime] = None) -> bool:
    now = now or datetime.now(timezone.utc)
    return subscription.end_at is not None and _as_utc(subscription.end_at) <= now


def _active_row(db: Session, vendor_id: int) -> Optional[Subscription]:
    return (
        db.query(Subscription)
        .filter(
            Subscription.vendor_id == vendor_id,
            Subscription.status == SubscriptionStatus.ACTIVE.value,
        )
        .first()
    )


def get_active_subscription(db: Session, vendor_id: int, now: Optional[datetime] = None) -> Optional[Subscription]:
    """The vendor's current subscription; a row past its end date is not current even before the sweep runs."""
    subscription = _active_row(db, vendor_id)
    if subscription is None or is_lapsed(subscription, now):
        return None
    return subscription


def _mark_expired(subscription: Subscription) -> None:
    subscription.status = SubscriptionStatus.EXPIRED.value
    subscription.last_event = SubscriptionEventType.EXPIRED.value


def classify_change(previous: Optional[Subscription], plan: Plan) -> SubscriptionEventType:
    """Lifecycle event for replacing `previous` with a subscription to `plan`."""
    if previous is None:
        return SubscriptionEventType.CREATED
    if previous.plan_id == plan.id:
        return SubscriptionEventType.RESUMED
    previous_price = previous.plan.price if previous.plan else 0
    if plan.price > previous_price:
        return SubscriptionEventType.UPGRADED
    return SubscriptionEventType.DOWNGRADED


def activate_subscription(
    db: Session,
    vendor_id: int,
    plan: Plan,
    price_paid: Optional[float] = None,
    now: Optional[datetime] = None,
) -> Tuple[Subscription, SubscriptionEventType]:
    """
    Create the vendor's new active subscription and deactivate the old one.

    Flushes but does not commit; the caller commits together with its own
    state change.
    """
    now = now or datetime.now(timezone.utc)
    current = _active_row(db, vendor_id)
    previous = None
    if current is not None and is_lapsed(current, now):
        _mark_expired(current)
    else:
        previous = current
    event_type = classify_change(previous, plan)

    if current is not None:
        if previous is not None:
            previous.status = SubscriptionStatus.INACTIVE.value
        # Release the unique index before inserting the replacement
        db.flush()

    subscription = Subscription(
        vendor_id=vendor_id,
        plan_id=plan.id,
        status=SubscriptionStatus.ACTIVE.value,
        last_event=event_type.value,
        price_paid=plan.price if price_paid is None else price_paid,
        currency=plan.currency,
        start_at=now,
        end_at=now + timedelta(days=plan.duration_days or 365),
    )
    subscription.plan = plan
    db.add(subscription)
    db.flush()

    logger.info(
        f"Subscription activated: vendor_id={vendor_id}, plan={plan.code}, "
        f"event={event_type.value}, replaced={previous.id if previous else None}"
    )
    return subscription, event_type


def expire_subscriptions(db: Session, bus: Optional[EventBus] = None, now: Optional[datetime] = None) -> int:
    """
    Mark every active subscription past its end date as expired.

    Commits, then publishes an `expired` SubscriptionEvent per row so the
    vendor is notified. Returns the number of rows expired.
    """
    now = now or datetime.now(timezone.utc)
    lapsed = [
        subscription
        for subscription in db.query(Subscription)
        .filter(Subscription.status == SubscriptionStatus.ACTIVE.value)
        .all()
        if is_lapsed(subscription, now)
    ]
    if not lapsed:
        return 0

    for subscription in lapsed:
        _mark_expired(subscription)
    db.commit()
    logger.info(f"Subscriptions expired: count={len(lapsed)}, ids={[s.id for s in lapsed]}")

    if bus is not None:
        for subscription in lapsed:
            bus.publish(build_event(subscription, SubscriptionEventType.EXPIRED))
    return len(lapsed)


def build_event(subscription: Subscription, event_type: SubscriptionEventType) -> SubscriptionEvent:
    plan = subscription.plan
    return SubscriptionEvent(
        vendor_id=subscription.vendor_id,
        event_type=event_type.value,
        subscription=SubscriptionSnapshot(
            id=subscription.id,
            plan_code=plan.code,
            plan_name=plan.name,
            status=subscription.status,
            start_at=subscription.start_at,
            end_at=subscription.end_at,
            features=list(plan.features or []),
        ),
    )


def serialize_subscription(subscription: Optional[Subscription]) -> Optional[dict]:
    if subscription is None:
        return None
    return {
        "id": subscription.id,
        "planCode": subscription.plan.code if subscription.plan else None,
        "status": subscription.status,
        "lastEvent": subscription.last_event,
        "pricePaid": subscription.price_paid,
        "currency": subscription.currency,
        "startAt": subscription.start_at.isoformat() if subscription.start_at else None,
        "endAt": subscription.end_at.isoformat() if subscription.end_at else None,
    }
