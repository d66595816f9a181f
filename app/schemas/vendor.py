"""
Pydantic schemas for vendor onboarding, payments and admin review.
"""
import enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, field_validator


class PlanSelectRequest(BaseModel):
    plan_code: str = Field(..., min_length=1, alias="planCode", description="Plan code, e.g. VENDOR_BASIC")

    class Config:
        populate_by_name = True
        json_schema_extra = {"example": {"planCode": "VENDOR_BASIC"}}


class ProfileStepRequest(BaseModel):
    """Partial vendor profile update; only the fields sent are saved."""
    tagline: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    logo: Optional[str] = Field(default=None, max_length=500)
    cover_image: Optional[str] = Field(default=None, max_length=500, alias="coverImage")
    images: Optional[List[str]] = Field(default=None, max_length=20)
    address: Optional[str] = Field(default=None, max_length=500)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    country: Optional[str] = Field(default=None, max_length=100)
    pincode: Optional[str] = Field(default=None, max_length=20)
    years_in_business: Optional[int] = Field(default=None, ge=0, le=200, alias="yearsInBusiness")
    team_size: Optional[int] = Field(default=None, ge=1, le=100000, alias="teamSize")
    website: Optional[str] = Field(default=None, max_length=500)
    social_links: Optional[Dict[str, str]] = Field(default=None, alias="socialLinks")

    @field_validator("description", "city", "state", "tagline")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v

    @field_validator("description", "city", "state", "years_in_business", "team_size", "logo", "cover_image")
    @classmethod
    def required_not_cleared(cls, v):
        # Only runs for fields present in the request; omitted fields keep their stored value.
        if v is None or (isinstance(v, str) and not v):
            raise ValueError("required profile field cannot be cleared")
        return v

    def changes(self) -> dict:
        """Fields present in the request, keyed by model attribute name."""
        return self.model_dump(exclude_unset=True)

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "description": "Full-service wedding decor in Dhaka",
                "city": "Dhaka",
                "state": "Dhaka Division",
                "yearsInBusiness": 5,
                "teamSize": 12,
                "logo": "vendors/12/logo.png",
                "coverImage": "vendors/12/cover.jpg"
            }
        }


class CreateCheckoutRequest(BaseModel):
    success_url: Optional[str] = Field(default=None, alias="successUrl")
    cancel_url: Optional[str] = Field(default=None, alias="cancelUrl")
    coupon_code: Optional[str] = Field(default=None, max_length=50, alias="couponCode")

    class Config:
        populate_by_name = True


class VerifyPaymentRequest(BaseModel):
    session_id: str = Field(..., min_length=1, alias="sessionId", description="Gateway checkout session id")

    class Config:
        populate_by_name = True
        json_schema_extra = {"example": {"sessionId": "cs_test_a1b2c3"}}


class CouponValidateRequest(BaseModel):
    plan_code: str = Field(..., min_length=1, alias="planCode")
    coupon_code: str = Field(..., min_length=1, max_length=50, alias="couponCode")

    class Config:
        populate_by_name = True


class VendorAction(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"
    SUSPEND = "suspend"


class ReviewReasonRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class VendorActionRequest(ReviewReasonRequest):
    action: VendorAction

    class Config:
        json_schema_extra = {"example": {"action": "reject", "reason": "Incomplete photos"}}
