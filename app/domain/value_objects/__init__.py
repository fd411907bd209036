"""Value Objects for domain model."""
from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    """User roles."""

    NORMAL = "normal"
    BUSINESS = "business"
    ADMIN = "admin"


class UserStatus(str, Enum):
    """Account status."""

    ACTIVE = "active"
    BANNED = "banned"


class ActivityType(str, Enum):
    """Engagement kinds recorded in the activity ledger."""

    SAVE = "save"
    RATE = "rate"
    REVIEW = "review"


class SubscriptionType(str, Enum):
    """Billing plans for business accounts."""

    MONTHLY = "monthly"
    YEARLY = "yearly"

    @property
    def price_cents(self) -> int:
        return SUBSCRIPTION_PRICES[self]


class PaymentStatus(str, Enum):
    """Subscription payment state."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class ImageState(str, Enum):
    """Lifecycle of an uploaded image.

    PENDING_UPLOAD -> COMMITTED once the worker moved the object,
    COMMITTED -> PENDING_DELETE while the delete job runs.
    """

    PENDING_UPLOAD = "pending_upload"
    COMMITTED = "committed"
    PENDING_DELETE = "pending_delete"


SUBSCRIPTION_PRICES = {
    SubscriptionType.MONTHLY: 1499,
    SubscriptionType.YEARLY: 14999,
}

DEFAULT_CATEGORIES = ("Restaurant", "Hotel", "Shopping Mall", "Entertainment")

RATING_VALUES = ("0", "0.5", "1", "1.5", "2", "2.5", "3", "3.5", "4", "4.5", "5")


__all__ = [
    "ActivityType",
    "DEFAULT_CATEGORIES",
    "ImageState",
    "PaymentStatus",
    "RATING_VALUES",
    "SUBSCRIPTION_PRICES",
    "SubscriptionType",
    "UserRole",
    "UserStatus",
]
