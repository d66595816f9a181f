"""
Member profile and photo models.
"""
import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.db.base import Base


class PrivacyLevel(str, enum.Enum):
    """Who may see a member's photos."""
    PUBLIC = "public"
    CONNECTIONS = "connections"
    REQUEST = "request"


DEFAULT_PRIVACY_LEVEL = PrivacyLevel.CONNECTIONS.value


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    display_name = Column(String, nullable=False)
    gender = Column(String, nullable=True)
    location = Column(String, nullable=True)
    headline = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", backref="profile")
    photos = relationship("Photo", back_populates="profile", cascade="all, delete-orphan")


class Photo(Base):
    """
    Photo row referencing an uploaded object by key.

    A row whose object_key has no stored object is invalid and may be removed.
    """
    __tablename__ = "photos"

    id = Column(Integer, primary_key=True, index=True)
    profile_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    object_key = Column(String, nullable=False)
    privacy_level = Column(String, nullable=False, default=DEFAULT_PRIVACY_LEVEL)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    profile = relationship("Profile", back_populates="photos")

    def __repr__(self):
        return f"<Photo(id={self.id}, profile_id={self.profile_id}, object_key='{self.object_key}')>"
