"""Activity ledger: saves, ratings and reviews of destinations."""
from __future__ import annotations

import logging
import re

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictException, NotFoundException, ValidationException
from app.domain.models import BusinessProfile, User, UserActivity
from app.domain.value_objects import ActivityType
from app.repositories import ActivityRepository, BusinessRepository

logger = logging.getLogger(__name__)

RATING_PATTERN = re.compile(r"^(0(\.5)?|[1-4](\.5)?|5)$")


def normalize_rating(value: str | float | int) -> str:
    """Canonical string of a half-step rating in [0, 5].

    ``"4.0"`` becomes ``"4"``; anything off the half-step grid is rejected.

    Raises:
        ValidationException: Value is not one of 0, 0.5, ..., 5
    """
    raw = str(value).strip()
    if re.fullmatch(r"\d(\.0+)?", raw):
        raw = raw.split(".")[0]
    elif re.fullmatch(r"\d\.50*", raw):
        raw = raw[:3]
    if not RATING_PATTERN.match(raw):
        raise ValidationException("The rating must be between 0 and 5 in steps of 0.5.")
    return raw


def serialize_activity(activity: UserActivity) -> dict:
    return {
        "id": activity.id,
        "user_id": activity.user_id,
        "business_user_id": activity.business_user_id,
        "activity_type": activity.activity_type,
        "activity_value": activity.activity_value,
        "category": activity.category,
        "created_at": activity.created_at.isoformat() if activity.created_at else None,
    }


class ActivityService:
    """Record user engagement with destinations."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.activities = ActivityRepository(session)
        self.businesses = BusinessRepository(session)

    def _profile(self, business_user_id: int) -> BusinessProfile:
        return self.businesses.get_profile_or_raise(business_user_id)

    @staticmethod
    def _category_name(profile: BusinessProfile) -> str | None:
        return profile.category.name if profile.category else None

    def save(self, user: User, business_user_id: int) -> UserActivity:
        """Bookmark a destination; the save activity is written atomically with it.

        Raises:
            ConflictException: Destination already saved
        """
        profile = self._profile(business_user_id)
        if self.activities.get_saved(user.id, business_user_id) is not None:
            raise ConflictException("Destination already saved.")

        try:
            self.activities.add_saved(user.id, business_user_id)
            activity = self.activities.add_activity(
                user.id, business_user_id, ActivityType.SAVE, None, self._category_name(profile)
            )
            self.activities.commit()
        except IntegrityError as e:
            raise ConflictException("Destination already saved.") from e

        logger.info(f"User {user.id} saved destination {business_user_id}")
        return activity

    def unsave(self, user: User, business_user_id: int) -> None:
        """Remove the bookmark and its save activity together.

        Raises:
            NotFoundException: Nothing saved for this pair
        """
        self._profile(business_user_id)
        saved = self.activities.get_saved(user.id, business_user_id)
        if saved is None:
            raise NotFoundException("Saved destination not found.")

        self.activities.delete_saved(saved)
        activity = self.activities.get_activity(user.id, business_user_id, ActivityType.SAVE)
        if activity is not None:
            self.activities.delete_activity(activity)
        self.activities.commit()
        logger.info(f"User {user.id} unsaved destination {business_user_id}")

    def rate(self, user: User, business_user_id: int, value: str | float) -> UserActivity:
        """Create or replace the user's single rating of a destination.

        The value is stored as submitted once it passes validation.
        """
        normalize_rating(value)
        rating = str(value).strip()
        profile = self._profile(business_user_id)
        category = self._category_name(profile)

        activity = self.activities.get_activity(user.id, business_user_id, ActivityType.RATE)
        if activity is None:
            activity = self.activities.add_activity(
                user.id, business_user_id, ActivityType.RATE, rating, category
            )
        else:
            activity.activity_value = rating
            activity.category = category

        try:
            self.activities.commit()
        except IntegrityError:
            # Concurrent first rating won the insert; update that row instead
            activity = self.activities.get_activity(user.id, business_user_id, ActivityType.RATE)
            activity.activity_value = rating
            activity.category = category
            self.activities.commit()
        return activity

    def review(self, user: User, business_user_id: int, text: str) -> UserActivity:
        text = (text or "").strip()
        if not text:
            raise ValidationException("The review field is required.")
        profile = self._profile(business_user_id)
        activity = self.activities.add_activity(
            user.id, business_user_id, ActivityType.REVIEW, text, self._category_name(profile)
        )
        self.activities.commit()
        return activity

    def average_rating(self, business_user_id: int) -> float:
        """Mean of all ratings, 0 when the destination has none."""
        values = []
        for raw in self.activities.values_for_business(business_user_id, ActivityType.RATE):
            try:
                values.append(float(raw))
            except ValueError:
                logger.warning(f"Ignoring non-numeric rating {raw!r} for {business_user_id}")
        if not values:
            return 0
        return round(sum(values) / len(values), 2)

    def rating_summary(self, business_user_id: int) -> dict:
        self._profile(business_user_id)
        count = len(self.activities.values_for_business(business_user_id, ActivityType.RATE))
        return {"rating": self.average_rating(business_user_id), "count": count}

    def reviews(self, business_user_id: int) -> list[str]:
        return self.activities.values_for_business(business_user_id, ActivityType.REVIEW)

    def check_rated(self, user: User, business_user_id: int) -> dict:
        self._profile(business_user_id)
        activity = self.activities.get_activity(user.id, business_user_id, ActivityType.RATE)
        return {
            "rated": activity is not None,
            "rating": float(activity.activity_value) if activity else None,
        }
