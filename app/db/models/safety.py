"""
Member safety models: blocks and reports.
"""
import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.sql import func
from app.db.base import Base


class ReportReason(str, enum.Enum):
    FAKE_PROFILE = "Fake profile"
    INAPPROPRIATE_CONTENT = "Inappropriate content"
    HARASSMENT = "Harassment or Abuse"
    SPAM = "Spam or scam"
    OTHER = "Other"


class ReportStatus(str, enum.Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    DISMISSED = "dismissed"
    ACTIONED = "actioned"


class Block(Base):
    __tablename__ = "blocks"

    id = Column(Integer, primary_key=True, index=True)
    blocker_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    blocked_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    reason = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("blocker_user_id", "blocked_user_id", name="uq_block_pair"),
    )


class Report(Base):
    """
    A member's report against a profile.

    Reporters only create reports; status changes are made by admins.
    """
    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, index=True)
    reporter_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    reported_profile_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    reason = Column(String, nullable=False)
    details = Column(Text, nullable=True)
    screenshot_url = Column(String, nullable=True)
    status = Column(String, nullable=False, default=ReportStatus.PENDING.value)
    admin_notes = Column(Text, nullable=True)
    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_report_reporter_profile", "reporter_user_id", "reported_profile_id"),
    )
