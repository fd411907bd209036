"""Domain package."""

from .value_objects import (
    ActivityType,
    ImageState,
    PaymentStatus,
    SubscriptionType,
    UserRole,
    UserStatus,
)

__all__ = [
    # Value Objects
    "ActivityType",
    "ImageState",
    "PaymentStatus",
    "SubscriptionType",
    "UserRole",
    "UserStatus",
]
