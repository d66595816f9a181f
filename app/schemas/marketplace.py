"""
Pydantic schemas for service listings, bookings and reviews.
"""
import enum
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class PriceUnit(str, enum.Enum):
    PER_EVENT = "per_event"
    PER_HOUR = "per_hour"
    PER_DAY = "per_day"
    PER_PERSON = "per_person"


class ServiceListingCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    base_price: float = Field(..., gt=0, alias="basePrice")
    currency: str = Field(default="BDT", min_length=3, max_length=3)
    price_unit: PriceUnit = Field(default=PriceUnit.PER_EVENT, alias="priceUnit")
    min_capacity: Optional[int] = Field(default=None, ge=1, alias="minCapacity")
    max_capacity: Optional[int] = Field(default=None, ge=1, alias="maxCapacity")
    is_available: bool = Field(default=True, alias="isAvailable")

    class Config:
        populate_by_name = True
        use_enum_values = True
        json_schema_extra = {
            "example": {
                "title": "Holud stage decoration",
                "basePrice": 45000,
                "priceUnit": "per_event",
                "maxCapacity": 300
            }
        }


class ServiceListingUpdate(BaseModel):
    """Partial listing update; only the fields sent are saved."""
    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    base_price: Optional[float] = Field(default=None, gt=0, alias="basePrice")
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    price_unit: Optional[PriceUnit] = Field(default=None, alias="priceUnit")
    min_capacity: Optional[int] = Field(default=None, ge=1, alias="minCapacity")
    max_capacity: Optional[int] = Field(default=None, ge=1, alias="maxCapacity")
    is_available: Optional[bool] = Field(default=None, alias="isAvailable")

    @field_validator("title", "base_price", "currency", "price_unit", "is_available")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("field cannot be null")
        return v

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)

    class Config:
        populate_by_name = True
        use_enum_values = True


class AvailabilityRequest(BaseModel):
    is_available: Optional[bool] = Field(default=None, alias="isAvailable", description="Omit to toggle")

    class Config:
        populate_by_name = True


class ServiceSort(str, enum.Enum):
    NEWEST = "newest"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    RATING = "rating"


class BookingCreate(BaseModel):
    service_id: int = Field(..., alias="serviceId")
    event_date: datetime = Field(..., alias="eventDate")
    event_location: Optional[str] = Field(default=None, max_length=500, alias="eventLocation")
    guest_count: Optional[int] = Field(default=None, ge=1, alias="guestCount")
    requirements: Optional[str] = Field(default=None, max_length=2000)
    user_notes: Optional[str] = Field(default=None, max_length=1000, alias="userNotes")

    class Config:
        populate_by_name = True


class BookingConfirmRequest(BaseModel):
    vendor_notes: Optional[str] = Field(default=None, max_length=1000, alias="vendorNotes")

    class Config:
        populate_by_name = True


class BookingCancelRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class ReviewCreate(BaseModel):
    booking_id: int = Field(..., alias="bookingId")
    rating: int = Field(..., ge=1, le=5)
    title: Optional[str] = Field(default=None, max_length=200)
    comment: Optional[str] = Field(default=None, max_length=2000)

    class Config:
        populate_by_name = True


class ReviewReplyRequest(BaseModel):
    reply: str = Field(..., min_length=1, max_length=1000)
