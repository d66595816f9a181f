"""
Vendor marketplace: service listings, bookings and reviews.

Booking lifecycle:

    pending -> confirmed -> completed
    pending | confirmed -> cancelled
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import Conflict, Forbidden, InvalidStateTransition, NotFound, ValidationError
from app.db.models.marketplace import Booking, BookingStatus, Review, ServiceListing
from app.db.models.vendor import OnboardingStatus, Vendor, VendorProfile
from app.events.bus import EventBus, NotificationEvent

logger = logging.getLogger(__name__)

CANCELLABLE = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)


def _as_aware(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


# Listings

def create_listing(db: Session, vendor: Vendor, data: Dict) -> Dict:
    min_capacity, max_capacity = data.get("min_capacity"), data.get("max_capacity")
    if min_capacity and max_capacity and min_capacity > max_capacity:
        raise ValidationError("min_capacity cannot exceed max_capacity")

    listing = ServiceListing(vendor_id=vendor.id, **data)
    db.add(listing)
    db.commit()
    db.refresh(listing)
    logger.info(f"Service listing created: id={listing.id}, vendor_id={vendor.id}")
    return serialize_listing(listing)


def vendor_listings(db: Session, vendor_id: int) -> list:
    listings = (
        db.query(ServiceListing)
        .filter(ServiceListing.vendor_id == vendor_id)
        .order_by(ServiceListing.created_at.desc(), ServiceListing.id.desc())
        .all()
    )
    return [serialize_listing(s) for s in listings]


def get_listing(db: Session, service_id: int) -> Dict:
    """Public view of a listing; only approved vendors' listings are visible."""
    listing = (
        db.query(ServiceListing)
        .join(Vendor, Vendor.id == ServiceListing.vendor_id)
        .filter(
            ServiceListing.id == service_id,
            Vendor.onboarding_status == OnboardingStatus.APPROVED.value,
        )
        .first()
    )
    if listing is None:
        raise NotFound("Service not found", code="SERVICE_NOT_FOUND")

    count, average = (
        db.query(func.count(Review.id), func.avg(Review.rating))
        .filter(Review.service_id == listing.id)
        .one()
    )
    result = serialize_listing(listing)
    result["vendor"] = {"id": listing.vendor.id, "businessName": listing.vendor.business_name}
    result["reviewStats"] = {
        "total": count,
        "averageRating": round(float(average), 2) if average is not None else None,
    }
    return result


def _own_listing(db: Session, vendor_id: int, service_id: int) -> ServiceListing:
    listing = db.query(ServiceListing).filter(ServiceListing.id == service_id).first()
    if listing is None:
        raise NotFound("Service not found", code="SERVICE_NOT_FOUND")
    if listing.vendor_id != vendor_id:
        raise Forbidden("You can only manage your own services")
    return listing


def update_listing(db: Session, vendor_id: int, service_id: int, changes: Dict) -> Dict:
    listing = _own_listing(db, vendor_id, service_id)

    min_capacity = changes.get("min_capacity", listing.min_capacity)
    max_capacity = changes.get("max_capacity", listing.max_capacity)
    if min_capacity and max_capacity and min_capacity > max_capacity:
        raise ValidationError("min_capacity cannot exceed max_capacity")

    for field_name, value in changes.items():
        setattr(listing, field_name, value)
    db.commit()
    db.refresh(listing)
    logger.info(f"Service listing updated: id={listing.id}, fields={sorted(changes)}")
    return serialize_listing(listing)


def set_availability(db: Session, vendor_id: int, service_id: int, is_available: Optional[bool] = None) -> Dict:
    """Set the listing's availability, or flip it when no value is given."""
    listing = _own_listing(db, vendor_id, service_id)
    listing.is_available = (not listing.is_available) if is_available is None else is_available
    db.commit()
    db.refresh(listing)
    logger.info(f"Service listing availability: id={listing.id}, is_available={listing.is_available}")
    return serialize_listing(listing)


def delete_listing(db: Session, vendor_id: int, service_id: int) -> None:
    """
    Delete a listing with no open bookings.

    Closed bookings of the listing and their reviews are removed with it.
    """
    listing = _own_listing(db, vendor_id, service_id)

    open_bookings = (
        db.query(Booking)
        .filter(Booking.service_id == listing.id, Booking.status.in_(CANCELLABLE))
        .count()
    )
    if open_bookings:
        raise ValidationError(
            "Cannot delete service with active bookings. Complete or cancel them first.",
            code="SERVICE_HAS_ACTIVE_BOOKINGS",
        )

    db.query(Review).filter(Review.service_id == listing.id).delete(synchronize_session=False)
    db.query(Booking).filter(Booking.service_id == listing.id).delete(synchronize_session=False)
    db.delete(listing)
    db.commit()
    logger.info(f"Service listing deleted: id={service_id}, vendor_id={vendor_id}")


def search_listings(
    db: Session,
    search: Optional[str] = None,
    city: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    price_unit: Optional[str] = None,
    min_rating: Optional[float] = None,
    sort_by: str = "newest",
    page: int = 1,
    limit: int = 10,
) -> Tuple[list, int]:
    """Public search over available listings of approved vendors."""
    ratings = (
        db.query(Review.service_id.label("service_id"), func.avg(Review.rating).label("avg_rating"))
        .group_by(Review.service_id)
        .subquery()
    )
    query = (
        db.query(ServiceListing, ratings.c.avg_rating)
        .join(Vendor, Vendor.id == ServiceListing.vendor_id)
        .outerjoin(ratings, ratings.c.service_id == ServiceListing.id)
        .filter(
            ServiceListing.is_available.is_(True),
            Vendor.onboarding_status == OnboardingStatus.APPROVED.value,
        )
    )

    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            ServiceListing.title.ilike(pattern),
            ServiceListing.description.ilike(pattern),
            Vendor.business_name.ilike(pattern),
        ))
    if city:
        query = query.join(VendorProfile, VendorProfile.vendor_id == Vendor.id).filter(
            VendorProfile.city.ilike(f"%{city.strip()}%")
        )
    if min_price is not None:
        query = query.filter(ServiceListing.base_price >= min_price)
    if max_price is not None:
        query = query.filter(ServiceListing.base_price <= max_price)
    if price_unit:
        query = query.filter(ServiceListing.price_unit == price_unit)
    if min_rating is not None:
        query = query.filter(ratings.c.avg_rating >= min_rating)

    total = query.count()

    if sort_by == "price_asc":
        order = (ServiceListing.base_price.asc(),)
    elif sort_by == "price_desc":
        order = (ServiceListing.base_price.desc(),)
    elif sort_by == "rating":
        # Unrated listings last
        order = (ratings.c.avg_rating.is_(None), ratings.c.avg_rating.desc())
    else:
        order = (ServiceListing.created_at.desc(),)

    rows = query.order_by(*order, ServiceListing.id.desc()).offset((page - 1) * limit).limit(limit).all()

    items = []
    for listing, average in rows:
        item = serialize_listing(listing)
        item["vendor"] = {"id": listing.vendor.id, "businessName": listing.vendor.business_name}
        item["averageRating"] = round(float(average), 2) if average is not None else None
        items.append(item)
    return items, total


def serialize_listing(listing: ServiceListing) -> Dict:
    return {
        "id": listing.id,
        "vendorId": listing.vendor_id,
        "title": listing.title,
        "description": listing.description,
        "basePrice": listing.base_price,
        "currency": listing.currency,
        "priceUnit": listing.price_unit,
        "minCapacity": listing.min_capacity,
        "maxCapacity": listing.max_capacity,
        "isAvailable": listing.is_available,
    }


# Bookings

def create_booking(db: Session, bus: EventBus, user_id: int, data: Dict, now: Optional[datetime] = None) -> Dict:
    now = now or datetime.now(timezone.utc)

    listing = db.query(ServiceListing).filter(ServiceListing.id == data["service_id"]).first()
    if listing is None:
        raise NotFound("Service not found", code="SERVICE_NOT_FOUND")
    if not listing.is_available:
        raise ValidationError("This service is currently unavailable", code="SERVICE_UNAVAILABLE")
    if listing.vendor.onboarding_status != OnboardingStatus.APPROVED.value:
        raise ValidationError("This vendor is not available for bookings", code="VENDOR_UNAVAILABLE")

    event_date = _as_aware(data["event_date"])
    if event_date <= now:
        raise ValidationError("Event date must be in the future", code="INVALID_EVENT_DATE")

    guest_count = data.get("guest_count")
    if guest_count:
        if listing.min_capacity and guest_count < listing.min_capacity:
            raise ValidationError(f"Minimum guest count for this service is {listing.min_capacity}")
        if listing.max_capacity and guest_count > listing.max_capacity:
            raise ValidationError(f"Maximum guest count for this service is {listing.max_capacity}")

    total = listing.base_price
    if listing.price_unit == "per_person" and guest_count:
        total = listing.base_price * guest_count

    booking = Booking(
        user_id=user_id,
        service_id=listing.id,
        vendor_id=listing.vendor_id,
        event_date=event_date,
        event_location=data.get("event_location"),
        guest_count=guest_count,
        requirements=data.get("requirements"),
        user_notes=data.get("user_notes"),
        total_amount=total,
        status=BookingStatus.PENDING.value,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    logger.info(f"Booking created: id={booking.id}, user_id={user_id}, service_id={listing.id}")

    bus.publish(NotificationEvent(
        recipient_type="vendor",
        recipient_id=listing.vendor_id,
        type="booking_created",
        metadata={"bookingId": booking.id, "serviceTitle": listing.title},
    ))
    return serialize_booking(booking)


def _vendor_booking(db: Session, vendor_id: int, booking_id: int) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if booking is None:
        raise NotFound("Booking not found", code="BOOKING_NOT_FOUND")
    if booking.vendor_id != vendor_id:
        raise Forbidden("Access denied")
    return booking


def _notify_user(bus: EventBus, booking: Booking, notification_type: str) -> None:
    bus.publish(NotificationEvent(
        recipient_type="user",
        recipient_id=booking.user_id,
        type=notification_type,
        metadata={"bookingId": booking.id, "serviceTitle": booking.service.title},
    ))


def confirm_booking(db: Session, bus: EventBus, vendor_id: int, booking_id: int, vendor_notes: Optional[str] = None) -> Dict:
    booking = _vendor_booking(db, vendor_id, booking_id)
    if booking.status != BookingStatus.PENDING.value:
        raise InvalidStateTransition(booking.status, BookingStatus.CONFIRMED.value)

    booking.status = BookingStatus.CONFIRMED.value
    if vendor_notes:
        booking.vendor_notes = vendor_notes
    db.commit()
    db.refresh(booking)
    logger.info(f"Booking confirmed: id={booking.id}, vendor_id={vendor_id}")

    _notify_user(bus, booking, "booking_confirmed")
    return serialize_booking(booking)


def complete_booking(db: Session, bus: EventBus, vendor_id: int, booking_id: int, now: Optional[datetime] = None) -> Dict:
    now = now or datetime.now(timezone.utc)
    booking = _vendor_booking(db, vendor_id, booking_id)
    if booking.status != BookingStatus.CONFIRMED.value:
        raise InvalidStateTransition(booking.status, BookingStatus.COMPLETED.value)
    if _as_aware(booking.event_date) > now:
        raise ValidationError("Cannot mark as completed before the event date", code="EVENT_NOT_HAPPENED")

    booking.status = BookingStatus.COMPLETED.value
    db.commit()
    db.refresh(booking)
    logger.info(f"Booking completed: id={booking.id}, vendor_id={vendor_id}")

    _notify_user(bus, booking, "booking_completed")
    return serialize_booking(booking)


def cancel_booking(
    db: Session, bus: EventBus, requester_type: str, requester_id: int, booking_id: int, reason: Optional[str] = None
) -> Dict:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if booking is None:
        raise NotFound("Booking not found", code="BOOKING_NOT_FOUND")

    owner_id = booking.user_id if requester_type == "user" else booking.vendor_id
    if owner_id != requester_id:
        raise Forbidden("Access denied")
    if booking.status not in CANCELLABLE:
        raise InvalidStateTransition(booking.status, BookingStatus.CANCELLED.value)

    booking.status = BookingStatus.CANCELLED.value
    booking.cancel_reason = reason
    booking.cancelled_by = requester_type
    db.commit()
    db.refresh(booking)
    logger.info(f"Booking cancelled: id={booking.id}, by={requester_type}:{requester_id}")

    # Tell the other party
    if requester_type == "user":
        bus.publish(NotificationEvent(
            recipient_type="vendor",
            recipient_id=booking.vendor_id,
            type="booking_cancelled",
            metadata={"bookingId": booking.id, "serviceTitle": booking.service.title, "reason": reason},
        ))
    else:
        _notify_user(bus, booking, "booking_cancelled")
    return serialize_booking(booking)


def user_bookings(db: Session, user_id: int) -> list:
    rows = db.query(Booking).filter(Booking.user_id == user_id).order_by(Booking.event_date.asc(), Booking.id.asc()).all()
    return [serialize_booking(b) for b in rows]


def vendor_bookings(db: Session, vendor_id: int, status: Optional[str] = None) -> list:
    query = db.query(Booking).filter(Booking.vendor_id == vendor_id)
    if status:
        query = query.filter(Booking.status == status)
    return [serialize_booking(b) for b in query.order_by(Booking.event_date.asc(), Booking.id.asc()).all()]


def serialize_booking(booking: Booking) -> Dict:
    return {
        "id": booking.id,
        "userId": booking.user_id,
        "vendorId": booking.vendor_id,
        "serviceId": booking.service_id,
        "serviceTitle": booking.service.title if booking.service else None,
        "eventDate": booking.event_date.isoformat() if booking.event_date else None,
        "eventLocation": booking.event_location,
        "guestCount": booking.guest_count,
        "requirements": booking.requirements,
        "userNotes": booking.user_notes,
        "vendorNotes": booking.vendor_notes,
        "totalAmount": booking.total_amount,
        "status": booking.status,
        "cancelReason": booking.cancel_reason,
        "cancelledBy": booking.cancelled_by,
    }


# Reviews

def create_review(
    db: Session,
    bus: EventBus,
    user_id: int,
    booking_id: int,
    rating: int,
    title: Optional[str] = None,
    comment: Optional[str] = None,
) -> Dict:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if booking is None:
        raise NotFound("Booking not found", code="BOOKING_NOT_FOUND")
    if booking.user_id != user_id:
        raise Forbidden("You can only review your own bookings")
    if booking.status != BookingStatus.COMPLETED.value:
        raise ValidationError("You can only review completed bookings", code="BOOKING_NOT_COMPLETED")
    if db.query(Review).filter(Review.booking_id == booking.id).first() is not None:
        raise Conflict("You have already reviewed this booking", code="REVIEW_EXISTS")

    review = Review(
        booking_id=booking.id,
        user_id=user_id,
        vendor_id=booking.vendor_id,
        service_id=booking.service_id,
        rating=rating,
        title=title,
        comment=comment,
    )
    db.add(review)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise Conflict("You have already reviewed this booking", code="REVIEW_EXISTS") from e
    db.refresh(review)
    logger.info(f"Review created: id={review.id}, booking_id={booking.id}, rating={rating}")

    bus.publish(NotificationEvent(
        recipient_type="vendor",
        recipient_id=booking.vendor_id,
        type="review_received",
        metadata={"reviewId": review.id, "rating": rating, "serviceTitle": booking.service.title},
    ))
    return serialize_review(review)


def service_reviews(db: Session, service_id: int) -> list:
    rows = (
        db.query(Review)
        .filter(Review.service_id == service_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )
    return [serialize_review(r) for r in rows]


def reply_to_review(db: Session, vendor_id: int, review_id: int, reply: str) -> Dict:
    review = db.query(Review).filter(Review.id == review_id).first()
    if review is None:
        raise NotFound("Review not found", code="REVIEW_NOT_FOUND")
    if review.vendor_id != vendor_id:
        raise Forbidden("You can only reply to reviews for your services")
    if review.vendor_reply:
        raise Conflict("You have already replied to this review", code="REPLY_EXISTS")

    review.vendor_reply = reply
    review.replied_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(review)
    return serialize_review(review)


def serialize_review(review: Review) -> Dict:
    return {
        "id": review.id,
        "bookingId": review.booking_id,
        "serviceId": review.service_id,
        "vendorId": review.vendor_id,
        "rating": review.rating,
        "title": review.title,
        "comment": review.comment,
        "vendorReply": review.vendor_reply,
        "repliedAt": review.replied_at.isoformat() if review.replied_at else None,
        "createdAt": review.created_at.isoformat() if review.created_at else None,
    }
