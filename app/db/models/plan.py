from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean, JSON
from sqlalchemy.sql import func
from app.db.base import Base


class Plan(Base):
    """
    Purchasable plan catalog entry.

    Seeded at startup and read by onboarding, checkout and subscriptions.
    """
    __tablename__ = "plans"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, index=True, nullable=False)  # e.g. VENDOR_BASIC
    name = Column(String, nullable=False)
    price = Column(Float, nullable=False)
    currency = Column(String(3), nullable=False, default="BDT")
    duration_days = Column(Integer, nullable=False, default=365)
    category = Column(String, nullable=False, default="vendor", index=True)  # vendor | member

    discount_amount = Column(Float, nullable=True)
    discount_percent = Column(Float, nullable=True)
    coupon_code = Column(String, nullable=True)
    coupon_valid_until = Column(DateTime(timezone=True), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    is_invite_only = Column(Boolean, nullable=False, default=False)
    features = Column(JSON, nullable=True, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
