"""Persistence models and request payloads."""

from .orm import (
    Base,
    Booking,
    BookingSlot,
    BusinessProfile,
    Category,
    Image,
    RevokedToken,
    SavedDestination,
    Subscription,
    User,
    UserActivity,
    utcnow,
)

__all__ = [
    "Base",
    "Booking",
    "BookingSlot",
    "BusinessProfile",
    "Category",
    "Image",
    "RevokedToken",
    "SavedDestination",
    "Subscription",
    "User",
    "UserActivity",
    "utcnow",
]
