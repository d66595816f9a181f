"""
Database models module.

This module imports all database models to ensure they are registered with SQLAlchemy's Base.metadata
before table creation.
"""
from app.db.models.user import User, UserRole
from app.db.models.profile import Profile, Photo, PrivacyLevel
from app.db.models.safety import Block, Report, ReportReason, ReportStatus
from app.db.models.plan import Plan
from app.db.models.vendor import Vendor, VendorProfile, OnboardingStatus
from app.db.models.subscription import Subscription, SubscriptionStatus, SubscriptionEventType
from app.db.models.payment import Payment, PaymentStatus
from app.db.models.marketplace import ServiceListing, Booking, BookingStatus, Review
from app.db.models.notification import Notification

__all__ = [
    "User",
    "UserRole",
    "Profile",
    "Photo",
    "PrivacyLevel",
    "Block",
    "Report",
    "ReportReason",
    "ReportStatus",
    "Plan",
    "Vendor",
    "VendorProfile",
    "OnboardingStatus",
    "Subscription",
    "SubscriptionStatus",
    "SubscriptionEventType",
    "Payment",
    "PaymentStatus",
    "ServiceListing",
    "Booking",
    "BookingStatus",
    "Review",
    "Notification",
]
