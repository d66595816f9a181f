"""
Admin review of vendors: listing, details, approve/reject/suspend and
dashboard counters.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.core.errors import NotFound, ValidationError
from app.db.models.marketplace import Booking, BookingStatus, Review, ServiceListing
from app.db.models.subscription import Subscription
from app.db.models.vendor import OnboardingStatus, Vendor
from app.events.bus import EventBus, NotificationEvent, NotificationPriority
from app.services import plan_service, subscription_service
from app.services.vendor_onboarding_service import get_vendor, serialize_profile
from app.services.vendor_workflow import missing_profile_fields, transition

logger = logging.getLogger(__name__)


def serialize_vendor(vendor: Vendor) -> Dict:
    return {
        "id": vendor.id,
        "email": vendor.email,
        "businessName": vendor.business_name,
        "ownerName": vendor.owner_name,
        "phoneNumber": vendor.phone_number,
        "isVerified": vendor.is_verified,
        "status": vendor.onboarding_status,
        "planCode": vendor.plan.code if vendor.plan else None,
        "rejectionReason": vendor.rejection_reason,
        "approvedAt": vendor.approved_at.isoformat() if vendor.approved_at else None,
        "reviewedAt": vendor.reviewed_at.isoformat() if vendor.reviewed_at else None,
        "createdAt": vendor.created_at.isoformat() if vendor.created_at else None,
    }


def list_vendors(
    db: Session,
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
) -> Tuple[list, int]:
    query = db.query(Vendor)
    if status:
        try:
            status = OnboardingStatus(status.upper()).value
        except ValueError:
            raise ValidationError(f"Unknown vendor status: {status}")
        query = query.filter(Vendor.onboarding_status == status)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Vendor.business_name.ilike(pattern),
            Vendor.owner_name.ilike(pattern),
            Vendor.email.ilike(pattern),
        ))

    total = query.count()
    vendors = (
        query.order_by(Vendor.created_at.desc(), Vendor.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return [serialize_vendor(v) for v in vendors], total


def pending_vendors(db: Session, page: int = 1, limit: int = 10) -> Tuple[list, int]:
    query = db.query(Vendor).filter(
        Vendor.onboarding_status == OnboardingStatus.PENDING_APPROVAL.value,
        Vendor.is_verified.is_(True),
    )
    total = query.count()
    # Oldest submissions first
    vendors = query.order_by(Vendor.updated_at.asc(), Vendor.id.asc()).offset((page - 1) * limit).limit(limit).all()
    return [serialize_vendor(v) for v in vendors], total


def vendor_details(db: Session, vendor_id: int) -> Dict:
    vendor = get_vendor(db, vendor_id)

    booking_rows = (
        db.query(Booking.status, func.count(Booking.id))
        .filter(Booking.vendor_id == vendor.id)
        .group_by(Booking.status)
        .all()
    )
    booking_stats = {s.value: 0 for s in BookingStatus}
    booking_stats.update({status: count for status, count in booking_rows})

    review_count, average_rating = (
        db.query(func.count(Review.id), func.avg(Review.rating))
        .filter(Review.vendor_id == vendor.id)
        .one()
    )

    details = serialize_vendor(vendor)
    details.update({
        "profile": serialize_profile(vendor.profile),
        "missingFields": missing_profile_fields(vendor.profile),
        "plan": plan_service.serialize_plan(vendor.plan) if vendor.plan else None,
        "subscription": subscription_service.serialize_subscription(
            subscription_service.get_active_subscription(db, vendor.id)
        ),
        "serviceCount": db.query(ServiceListing).filter(ServiceListing.vendor_id == vendor.id).count(),
        "bookingStats": booking_stats,
        "reviewStats": {
            "total": review_count,
            "averageRating": round(float(average_rating), 2) if average_rating is not None else None,
        },
    })
    return details


def approve(db: Session, bus: EventBus, vendor_id: int, admin_user_id: int) -> Vendor:
    """
    Approve a pending vendor and activate the subscription for its plan.

    A subscription already activated by payment for the same plan is kept.
    """
    vendor = get_vendor(db, vendor_id)
    transition(vendor, OnboardingStatus.APPROVED)

    now = datetime.now(timezone.utc)
    vendor.approved_at = now
    vendor.approved_by = admin_user_id
    vendor.reviewed_at = now
    vendor.rejection_reason = None

    activated = None
    if vendor.plan is not None:
        active = subscription_service.get_active_subscription(db, vendor.id)
        if active is None or active.plan_id != vendor.plan_id:
            activated = subscription_service.activate_subscription(db, vendor.id, vendor.plan, now=now)

    db.commit()
    db.refresh(vendor)
    logger.info(f"Vendor approved: vendor_id={vendor.id}, by admin_user_id={admin_user_id}")

    if activated is not None:
        subscription, event_type = activated
        bus.publish(subscription_service.build_event(subscription, event_type))
    bus.publish(NotificationEvent(
        recipient_type="vendor",
        recipient_id=vendor.id,
        type="vendor_approved",
        metadata={"businessName": vendor.business_name},
        priority=NotificationPriority.HIGH,
    ))
    return vendor


def reject(db: Session, bus: EventBus, vendor_id: int, admin_user_id: int, reason: Optional[str] = None) -> Vendor:
    vendor = get_vendor(db, vendor_id)
    transition(vendor, OnboardingStatus.REJECTED)
    vendor.reviewed_at = datetime.now(timezone.utc)
    vendor.rejection_reason = reason

    db.commit()
    db.refresh(vendor)
    logger.info(f"Vendor rejected: vendor_id={vendor.id}, by admin_user_id={admin_user_id}")

    bus.publish(NotificationEvent(
        recipient_type="vendor",
        recipient_id=vendor.id,
        type="vendor_rejected",
        metadata={"businessName": vendor.business_name, "reason": reason},
        priority=NotificationPriority.HIGH,
    ))
    return vendor


def suspend(db: Session, bus: EventBus, vendor_id: int, admin_user_id: int, reason: Optional[str] = None) -> Vendor:
    vendor = get_vendor(db, vendor_id)
    transition(vendor, OnboardingStatus.SUSPENDED)
    vendor.reviewed_at = datetime.now(timezone.utc)
    vendor.rejection_reason = reason

    db.commit()
    db.refresh(vendor)
    logger.warning(f"Vendor suspended: vendor_id={vendor.id}, by admin_user_id={admin_user_id}")

    bus.publish(NotificationEvent(
        recipient_type="vendor",
        recipient_id=vendor.id,
        type="vendor_suspended",
        metadata={"businessName": vendor.business_name, "reason": reason},
        priority=NotificationPriority.IMMEDIATE,
    ))
    return vendor


def handle_action(
    db: Session, bus: EventBus, vendor_id: int, admin_user_id: int, action: str, reason: Optional[str] = None
) -> Vendor:
    if action == "approve":
        return approve(db, bus, vendor_id, admin_user_id)
    if action == "reject":
        return reject(db, bus, vendor_id, admin_user_id, reason)
    if action == "suspend":
        return suspend(db, bus, vendor_id, admin_user_id, reason)
    raise ValidationError(f"Unknown action: {action}")


def dashboard(db: Session) -> Dict:
    status_rows = (
        db.query(Vendor.onboarding_status, func.count(Vendor.id))
        .group_by(Vendor.onboarding_status)
        .all()
    )
    by_status = {s.value: 0 for s in OnboardingStatus}
    by_status.update({status: count for status, count in status_rows})

    recent_pending = (
        db.query(Vendor)
        .filter(Vendor.onboarding_status == OnboardingStatus.PENDING_APPROVAL.value)
        .order_by(Vendor.updated_at.desc(), Vendor.id.desc())
        .limit(5)
        .all()
    )

    return {
        "vendors": {"total": sum(by_status.values()), "byStatus": by_status},
        "services": db.query(ServiceListing).count(),
        "bookings": {
            "total": db.query(Booking).count(),
            "completed": db.query(Booking).filter(Booking.status == BookingStatus.COMPLETED.value).count(),
        },
        "reviews": db.query(Review).count(),
        "activeSubscriptions": db.query(Subscription).filter(Subscription.status == "active").count(),
        "recentPending": [serialize_vendor(v) for v in recent_pending],
    }
