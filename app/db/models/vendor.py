"""
Vendor account and onboarding profile models.
"""
import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.db.base import Base


class OnboardingStatus(str, enum.Enum):
    """Vendor onboarding states."""
    REGISTERED = "REGISTERED"
    PLAN_SELECTED = "PLAN_SELECTED"
    PROFILE_COMPLETED = "PROFILE_COMPLETED"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SUSPENDED = "SUSPENDED"


class Vendor(Base):
    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    business_name = Column(String, nullable=False)
    owner_name = Column(String, nullable=False)
    phone_number = Column(String, nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)

    # Only changed through app.services.vendor_workflow
    onboarding_status = Column(
        String, nullable=False, default=OnboardingStatus.REGISTERED.value, index=True
    )
    plan_id = Column(Integer, ForeignKey("plans.id"), nullable=True)

    approved_at = Column(DateTime(timezone=True), nullable=True)
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    plan = relationship("Plan")
    profile = relationship("VendorProfile", back_populates="vendor", uselist=False, cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Vendor(id={self.id}, business_name='{self.business_name}', status='{self.onboarding_status}')>"


class VendorProfile(Base):
    """Profile fields filled in step by step during onboarding."""
    __tablename__ = "vendor_profiles"

    id = Column(Integer, primary_key=True, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), unique=True, nullable=False)

    tagline = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    logo = Column(String, nullable=True)
    cover_image = Column(String, nullable=True)
    images = Column(JSON, nullable=True, default=list)

    address = Column(String(500), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    pincode = Column(String(20), nullable=True)
    years_in_business = Column(Integer, nullable=True)
    team_size = Column(Integer, nullable=True)
    website = Column(String(500), nullable=True)
    social_links = Column(JSON, nullable=True)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    vendor = relationship("Vendor", back_populates="profile")
