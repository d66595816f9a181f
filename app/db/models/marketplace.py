"""
Vendor marketplace models: service listings, bookings and reviews.
"""
import enum

from sqlalchemy import (
    Column, Integer, String, Text, Float, DateTime, Boolean, ForeignKey, CheckConstraint
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.db.base import Base


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ServiceListing(Base):
    __tablename__ = "vendor_services"

    id = Column(Integer, primary_key=True, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    base_price = Column(Float, nullable=False)
    currency = Column(String(3), nullable=False, default="BDT")
    price_unit = Column(String, nullable=False, default="per_event")  # per_event | per_hour | per_day | per_person
    min_capacity = Column(Integer, nullable=True)
    max_capacity = Column(Integer, nullable=True)
    is_available = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    vendor = relationship("Vendor", backref="services")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("vendor_services.id"), nullable=False)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False, index=True)

    event_date = Column(DateTime(timezone=True), nullable=False)
    event_location = Column(String(500), nullable=True)
    guest_count = Column(Integer, nullable=True)
    requirements = Column(Text, nullable=True)
    user_notes = Column(Text, nullable=True)
    vendor_notes = Column(Text, nullable=True)
    total_amount = Column(Float, nullable=True)

    status = Column(String, nullable=False, default=BookingStatus.PENDING.value, index=True)
    cancel_reason = Column(String(500), nullable=True)
    cancelled_by = Column(String, nullable=True)  # user | vendor

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    service = relationship("ServiceListing")


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), unique=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("vendor_services.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    title = Column(String(200), nullable=True)
    comment = Column(Text, nullable=True)
    vendor_reply = Column(Text, nullable=True)
    replied_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating_range"),
    )
