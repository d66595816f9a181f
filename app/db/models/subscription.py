import enum

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Index, text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.db.base import Base


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class SubscriptionEventType(str, enum.Enum):
    """Lifecycle events published on the bus and recorded on the row."""
    CREATED = "created"
    UPGRADED = "upgraded"
    DOWNGRADED = "downgraded"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    RESUMED = "resumed"


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False, index=True)
    plan_id = Column(Integer, ForeignKey("plans.id"), nullable=False)

    status = Column(String, nullable=False, default=SubscriptionStatus.ACTIVE.value)
    last_event = Column(String, nullable=False, default=SubscriptionEventType.CREATED.value)

    price_paid = Column(Float, nullable=True)
    currency = Column(String(3), nullable=True)
    start_at = Column(DateTime(timezone=True), nullable=False)
    end_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    plan = relationship("Plan")

    # At most one active subscription per vendor
    __table_args__ = (
        Index(
            "uq_subscriptions_one_active_per_vendor",
            "vendor_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )
