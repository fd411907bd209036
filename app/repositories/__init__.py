"""Repository layer for data access abstraction."""
from __future__ import annotations

from .activity_repository import ActivityRepository
from .base import BaseRepository
from .booking_repository import BookingRepository
from .business_repository import BusinessRepository
from .image_repository import ImageRepository
from .subscription_repository import SubscriptionRepository
from .user_repository import UserRepository

__all__ = [
    "ActivityRepository",
    "BaseRepository",
    "BookingRepository",
    "BusinessRepository",
    "ImageRepository",
    "SubscriptionRepository",
    "UserRepository",
]
