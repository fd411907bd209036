"""Destination directory queries and serialization."""
from __future__ import annotations

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundException
from app.core.utils import hourly_slots
from app.domain.models import BusinessProfile, Category
from app.domain.value_objects import ActivityType, UserStatus
from app.repositories import ActivityRepository, BusinessRepository

from .activity_service import ActivityService
from .booking_service import BookingService


def serialize_category(category: Category) -> dict:
    return {"id": category.id, "name": category.name}


def serialize_profile(profile: BusinessProfile) -> dict:
    """Profile columns plus the derived owner/category/slot fields."""
    return {
        "id": profile.id,
        "user_id": profile.user_id,
        "business_name": profile.business_name,
        "category_id": profile.category_id,
        "latitude": profile.latitude,
        "longitude": profile.longitude,
        "district": profile.district,
        "opening_hour": profile.opening_hour,
        "closing_hour": profile.closing_hour,
        "main_img": profile.main_img,
        "description": profile.description,
        "counter_booking": profile.counter_booking,
        "user_name": profile.user.name if profile.user else None,
        "category_name": profile.category.name if profile.category else None,
        "available_booking_slots": hourly_slots(profile.opening_hour, profile.closing_hour),
    }


class DestinationService:
    """Read-side of the directory: listings, searches and per-destination data."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.businesses = BusinessRepository(session)
        self.activities = ActivityRepository(session)
        self.ledger = ActivityService(session)

    def serialize(self, profile: BusinessProfile) -> dict:
        data = serialize_profile(profile)
        data["reviews"] = self.activities.values_for_business(profile.user_id, ActivityType.REVIEW)
        data["rating"] = self.ledger.average_rating(profile.user_id)
        return data

    def serialize_many(self, profiles: list[BusinessProfile]) -> list[dict]:
        return [self.serialize(profile) for profile in profiles]

    def list_active(self) -> list[dict]:
        return self.serialize_many(self.businesses.list_profiles())

    def grouped_by_status(self) -> dict:
        return {
            "active": self.serialize_many(
                self.businesses.list_profiles(status=UserStatus.ACTIVE.value)
            ),
            "banned": self.serialize_many(
                self.businesses.list_profiles(status=UserStatus.BANNED.value)
            ),
        }

    def by_user_id(self, business_user_id: int) -> dict:
        profile = self.businesses.get_profile_or_raise(business_user_id)
        return self.serialize(profile)

    def by_name(self, name: str) -> list[dict]:
        return self.serialize_many(self.businesses.list_profiles(name=name))

    def by_district(self, district: str) -> list[dict]:
        return self.serialize_many(self.businesses.list_profiles(district=district))

    def by_category(self, category: str) -> list[dict]:
        """Filter by numeric category id or by (partial) category name.

        Raises:
            NotFoundException: No category matches the given name
        """
        term = category.strip()
        if term.isdigit():
            return self.serialize_many(self.businesses.list_profiles(category_id=int(term)))

        found = self.businesses.find_category_by_name(term)
        if found is None:
            raise NotFoundException("Category not found")
        return self.serialize_many(self.businesses.list_profiles(category_id=found.id))

    def by_category_names(self, names: list[str], random_order: bool = False) -> list[dict]:
        profiles = self.businesses.list_profiles(category_names=names, random_order=random_order)
        return self.serialize_many(profiles)

    def bookings_for_business(self, business_user_id: int) -> list[dict]:
        return BookingService(self.session).list_business_bookings(business_user_id)

    def reviews_for_business(self, business_user_id: int) -> list[str]:
        self.businesses.get_profile_or_raise(business_user_id)
        return self.ledger.reviews(business_user_id)

    def rating_for_business(self, business_user_id: int) -> dict:
        return self.ledger.rating_summary(business_user_id)

    def saved_for_user(self, user_id: int) -> list[dict]:
        return self.serialize_many(self.activities.saved_profiles(user_id))

    def list_categories(self) -> list[dict]:
        return [serialize_category(c) for c in self.businesses.list_categories()]
