"""
Pydantic schemas for member and vendor authentication endpoints.
"""
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator


def _check_password(v: str) -> str:
    """Validate password length in bytes (bcrypt limit is 72 bytes)."""
    password_bytes = v.encode("utf-8")
    if len(password_bytes) > 72:
        raise ValueError("Password too long (bcrypt limit 72 bytes)")
    if len(password_bytes) < 8:
        raise ValueError("Password must be at least 8 characters")
    return v


class SignupRequest(BaseModel):
    """Request schema for member signup."""
    full_name: str = Field(..., min_length=1, max_length=200, alias="fullName", description="Member's full name")
    email: EmailStr = Field(..., description="Member's email address")
    password: str = Field(..., min_length=8, description="Password (min 8 characters)")

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        return _check_password(v)

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "fullName": "Nusrat Jahan",
                "email": "nusrat@example.com",
                "password": "SecurePass123"
            }
        }


class VendorRegisterRequest(BaseModel):
    """Request schema for vendor registration."""
    email: EmailStr
    password: str = Field(..., min_length=8)
    business_name: str = Field(..., min_length=2, max_length=200, alias="businessName")
    owner_name: str = Field(..., min_length=2, max_length=200, alias="ownerName")
    phone_number: Optional[str] = Field(default=None, max_length=20, alias="phoneNumber")

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        return _check_password(v)

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "email": "hello@dhakadecor.com",
                "password": "SecurePass123",
                "businessName": "Dhaka Decor",
                "ownerName": "Rahim Uddin",
                "phoneNumber": "+8801711000000"
            }
        }


class VendorLoginRequest(BaseModel):
    """Request schema for vendor login."""
    email: EmailStr = Field(..., description="Vendor's email address")
    password: str = Field(..., description="Vendor's password")

    class Config:
        json_schema_extra = {
            "example": {
                "email": "hello@dhakadecor.com",
                "password": "SecurePass123"
            }
        }


class VendorVerifyEmailRequest(BaseModel):
    token: str = Field(..., min_length=1, description="Token from the verification link")


class VendorResendVerificationRequest(BaseModel):
    email: EmailStr
