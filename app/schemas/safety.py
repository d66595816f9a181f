"""
Pydantic schemas for blocks, reports and photo privacy.
"""
import enum
from typing import Optional
from pydantic import BaseModel, Field

from app.db.models.profile import PrivacyLevel
from app.db.models.safety import ReportReason


class BlockRequest(BaseModel):
    blocked_user_id: int = Field(..., alias="blockedUserId")
    reason: Optional[str] = Field(default=None, max_length=500)

    class Config:
        populate_by_name = True


class ReportCreate(BaseModel):
    reported_profile_id: int = Field(..., alias="reportedProfileId")
    reason: ReportReason
    details: Optional[str] = Field(default=None, max_length=1000)
    screenshot_url: Optional[str] = Field(default=None, max_length=500, alias="screenshotUrl")

    class Config:
        populate_by_name = True
        use_enum_values = True
        json_schema_extra = {
            "example": {
                "reportedProfileId": 42,
                "reason": "Fake profile",
                "details": "Photos are taken from a celebrity's page"
            }
        }


class ReportDecision(str, enum.Enum):
    REVIEWED = "reviewed"
    DISMISSED = "dismissed"
    ACTIONED = "actioned"


class ReportReviewRequest(BaseModel):
    status: ReportDecision
    admin_notes: Optional[str] = Field(default=None, max_length=1000, alias="adminNotes")

    class Config:
        populate_by_name = True
        use_enum_values = True


class PhotoPrivacyRequest(BaseModel):
    privacy_level: PrivacyLevel = Field(..., alias="privacyLevel")

    class Config:
        populate_by_name = True
        use_enum_values = True
