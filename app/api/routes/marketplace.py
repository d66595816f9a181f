from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.context import AppContext, get_context
from app.core.auth_dependency import Identity
from app.core.policy import Capability, require
from app.core.responses import ok, paginate
from app.db.session import get_db
from app.schemas.marketplace import (
    AvailabilityRequest,
    BookingCancelRequest,
    BookingConfirmRequest,
    BookingCreate,
    PriceUnit,
    ReviewCreate,
    ReviewReplyRequest,
    ServiceListingCreate,
    ServiceListingUpdate,
    ServiceSort,
)
from app.services import marketplace_service

router = APIRouter(tags=["Marketplace"])

member = require(Capability.MEMBER)
vendor = require(Capability.VENDOR)
approved_vendor = require(Capability.APPROVED_VENDOR)


# Service listings

@router.post("/vendors/services", status_code=201)
def create_service(
    body: ServiceListingCreate,
    identity: Identity = Depends(approved_vendor),
    db: Session = Depends(get_db),
):
    listing = marketplace_service.create_listing(db, identity.vendor, body.model_dump())
    return ok(listing, "Service created")


@router.get("/vendors/services/mine")
def my_services(identity: Identity = Depends(vendor), db: Session = Depends(get_db)):
    return ok(marketplace_service.vendor_listings(db, identity.vendor.id))


@router.put("/vendors/services/{service_id}")
def update_service(
    service_id: int,
    body: ServiceListingUpdate,
    identity: Identity = Depends(vendor),
    db: Session = Depends(get_db),
):
    listing = marketplace_service.update_listing(db, identity.vendor.id, service_id, body.changes())
    return ok(listing, "Service updated")


@router.patch("/vendors/services/{service_id}/availability")
def set_service_availability(
    service_id: int,
    body: Optional[AvailabilityRequest] = None,
    identity: Identity = Depends(vendor),
    db: Session = Depends(get_db),
):
    is_available = body.is_available if body else None
    return ok(marketplace_service.set_availability(db, identity.vendor.id, service_id, is_available))


@router.delete("/vendors/services/{service_id}")
def delete_service(service_id: int, identity: Identity = Depends(vendor), db: Session = Depends(get_db)):
    marketplace_service.delete_listing(db, identity.vendor.id, service_id)
    return ok(message="Service deleted")


@router.get("/services")
def search_services(
    search: Optional[str] = Query(None, max_length=100),
    city: Optional[str] = Query(None, max_length=100),
    min_price: Optional[float] = Query(None, ge=0, alias="minPrice"),
    max_price: Optional[float] = Query(None, ge=0, alias="maxPrice"),
    price_unit: Optional[PriceUnit] = Query(None, alias="priceUnit"),
    min_rating: Optional[float] = Query(None, ge=1, le=5, alias="minRating"),
    sort_by: ServiceSort = Query(ServiceSort.NEWEST, alias="sortBy"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    items, total = marketplace_service.search_listings(
        db,
        search=search,
        city=city,
        min_price=min_price,
        max_price=max_price,
        price_unit=price_unit.value if price_unit else None,
        min_rating=min_rating,
        sort_by=sort_by.value,
        page=page,
        limit=limit,
    )
    return ok(paginate(items, page, limit, total))


@router.get("/services/{service_id}")
def get_service(service_id: int, db: Session = Depends(get_db)):
    return ok(marketplace_service.get_listing(db, service_id))


@router.get("/services/{service_id}/reviews")
def get_service_reviews(service_id: int, db: Session = Depends(get_db)):
    return ok(marketplace_service.service_reviews(db, service_id))


# Bookings

@router.post("/bookings", status_code=201)
def create_booking(
    body: BookingCreate,
    identity: Identity = Depends(member),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
):
    booking = marketplace_service.create_booking(db, context.bus, identity.user.id, body.model_dump())
    return ok(booking, "Booking requested")


@router.get("/bookings/mine")
def my_bookings(identity: Identity = Depends(member), db: Session = Depends(get_db)):
    return ok(marketplace_service.user_bookings(db, identity.user.id))


@router.put("/bookings/{booking_id}/cancel")
def cancel_my_booking(
    booking_id: int,
    body: Optional[BookingCancelRequest] = None,
    identity: Identity = Depends(member),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
):
    reason = body.reason if body else None
    return ok(marketplace_service.cancel_booking(db, context.bus, "user", identity.user.id, booking_id, reason))


@router.get("/vendors/bookings")
def vendor_bookings(
    status: Optional[str] = None,
    identity: Identity = Depends(vendor),
    db: Session = Depends(get_db),
):
    return ok(marketplace_service.vendor_bookings(db, identity.vendor.id, status))


@router.put("/vendors/bookings/{booking_id}/confirm")
def confirm_booking(
    booking_id: int,
    body: Optional[BookingConfirmRequest] = None,
    identity: Identity = Depends(approved_vendor),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
):
    notes = body.vendor_notes if body else None
    return ok(marketplace_service.confirm_booking(db, context.bus, identity.vendor.id, booking_id, notes))


@router.put("/vendors/bookings/{booking_id}/complete")
def complete_booking(
    booking_id: int,
    identity: Identity = Depends(approved_vendor),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
):
    return ok(marketplace_service.complete_booking(db, context.bus, identity.vendor.id, booking_id))


@router.put("/vendors/bookings/{booking_id}/cancel")
def vendor_cancel_booking(
    booking_id: int,
    body: Optional[BookingCancelRequest] = None,
    identity: Identity = Depends(vendor),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
):
    reason = body.reason if body else None
    return ok(marketplace_service.cancel_booking(db, context.bus, "vendor", identity.vendor.id, booking_id, reason))


# Reviews

@router.post("/reviews", status_code=201)
def create_review(
    body: ReviewCreate,
    identity: Identity = Depends(member),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
):
    review = marketplace_service.create_review(
        db, context.bus, identity.user.id, body.booking_id, body.rating, body.title, body.comment
    )
    return ok(review, "Review submitted")


@router.put("/vendors/reviews/{review_id}/reply")
def reply_to_review(
    review_id: int,
    body: ReviewReplyRequest,
    identity: Identity = Depends(vendor),
    db: Session = Depends(get_db),
):
    return ok(marketplace_service.reply_to_review(db, identity.vendor.id, review_id, body.reply))
