"""
Pydantic models for request payload validation.

All shape validation happens at the API boundary; business rules that need
the store (email uniqueness, category existence, opening hours) live in the
services.
"""
from __future__ import annotations

import re
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from app.core.utils import parse_hhmm
from app.domain.value_objects import SubscriptionType, UserRole

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

_BUSINESS_REQUIRED = ("business_name", "category_id", "subscription_type", "payment_method")


class BusinessFields(BaseModel):
    """Optional business-profile fields shared by register and edit."""

    business_name: Optional[str] = Field(None, min_length=1, max_length=255)
    category_id: Optional[int] = Field(None, gt=0)
    district: Optional[str] = Field(None, max_length=255)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    opening_hour: Optional[str] = None
    closing_hour: Optional[str] = None
    main_img: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = Field(None, max_length=5000)
    counter_booking: Optional[int] = Field(None, ge=1, le=1000)

    @field_validator("opening_hour", "closing_hour")
    @classmethod
    def validate_hour(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        parsed = parse_hhmm(value)
        if parsed is None:
            raise ValueError("Hours must use the HH:MM format")
        return parsed.strftime("%H:%M")

    @model_validator(mode="after")
    def validate_hours_order(self):
        if self.opening_hour and self.closing_hour and self.opening_hour >= self.closing_hour:
            raise ValueError("closing_hour must be after opening_hour")
        return self

    def business_updates(self) -> dict:
        """Profile columns explicitly provided in the payload."""
        return {
            name: getattr(self, name)
            for name in BusinessFields.model_fields
            if getattr(self, name) is not None
        }


class RegisterRequest(BusinessFields):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=6, max_length=128)
    role: UserRole = UserRole.NORMAL
    profile_img: Optional[str] = Field(None, max_length=500)
    subscription_type: Optional[SubscriptionType] = None
    payment_method: Optional[str] = Field(None, min_length=1, max_length=255)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        value = value.strip().lower()
        if not EMAIL_PATTERN.match(value):
            raise ValueError("The email must be a valid email address")
        return value

    @field_validator("role")
    @classmethod
    def validate_role(cls, value: UserRole) -> UserRole:
        if value == UserRole.ADMIN:
            raise ValueError("Admin accounts cannot be self-registered")
        return value

    @model_validator(mode="after")
    def validate_business_fields(self):
        if self.role != UserRole.BUSINESS:
            return self
        missing = [name for name in _BUSINESS_REQUIRED if getattr(self, name) in (None, "")]
        if missing:
            raise ValueError(f"Missing business fields: {', '.join(missing)}")
        return self


class LoginRequest(BaseModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class ProfileUpdateRequest(BusinessFields):
    name: str = Field(..., min_length=1, max_length=255)
    profile_img: Optional[str] = Field(None, max_length=500)


class SubscriptionUpdateRequest(BaseModel):
    subscription_type: SubscriptionType
    payment_method: str = Field(..., min_length=1, max_length=255)


class DestinationRequest(BaseModel):
    business_user_id: int = Field(..., gt=0)


class RateRequest(DestinationRequest):
    rating: str = Field(..., min_length=1, max_length=8)

    @field_validator("rating", mode="before")
    @classmethod
    def coerce_rating(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class ReviewRequest(DestinationRequest):
    review: str = Field(..., min_length=1, max_length=5000)

    @field_validator("review")
    @classmethod
    def strip_review(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("The review field is required")
        return value


class BookingRequest(DestinationRequest):
    booking_date: date
    booking_time: str = Field(..., pattern=HHMM_PATTERN)


class UserIdRequest(BaseModel):
    user_id: int = Field(..., gt=0)


class ChatbotRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=2000)


class ImageDeleteRequest(BaseModel):
    image_ids: list[int] = Field(..., min_length=1)
