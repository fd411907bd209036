"""Activity ledger and saved destination repository."""
from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from app.domain.models import BusinessProfile, SavedDestination, UserActivity
from app.domain.value_objects import ActivityType

from .base import BaseRepository


class ActivityRepository(BaseRepository):
    """Repository for user activities and saved destinations."""

    def get_activity(
        self, user_id: int, business_user_id: int, activity_type: ActivityType
    ) -> Optional[UserActivity]:
        try:
            stmt = select(UserActivity).where(
                UserActivity.user_id == user_id,
                UserActivity.business_user_id == business_user_id,
                UserActivity.activity_type == activity_type.value,
            )
            return self.session.scalars(stmt).first()
        except SQLAlchemyError as e:
            self._handle_db_error("get_activity", e)

    def add_activity(
        self,
        user_id: int,
        business_user_id: int,
        activity_type: ActivityType,
        value: str | None,
        category: str | None,
    ) -> UserActivity:
        activity = UserActivity(
            user_id=user_id,
            business_user_id=business_user_id,
            activity_type=activity_type.value,
            activity_value=value,
            category=category,
        )
        self.session.add(activity)
        return activity

    def list_for_user(self, user_id: int) -> list[UserActivity]:
        try:
            stmt = (
                select(UserActivity)
                .where(UserActivity.user_id == user_id)
                .order_by(UserActivity.created_at, UserActivity.id)
            )
            return list(self.session.scalars(stmt).all())
        except SQLAlchemyError as e:
            self._handle_db_error("list_for_user", e)

    def values_for_business(self, business_user_id: int, activity_type: ActivityType) -> list[str]:
        try:
            stmt = (
                select(UserActivity.activity_value)
                .where(
                    UserActivity.business_user_id == business_user_id,
                    UserActivity.activity_type == activity_type.value,
                )
                .order_by(UserActivity.created_at, UserActivity.id)
            )
            return [value for value in self.session.scalars(stmt).all() if value is not None]
        except SQLAlchemyError as e:
            self._handle_db_error("values_for_business", e)

    def delete_activity(self, activity: UserActivity) -> None:
        self.session.delete(activity)

    # Saved destinations

    def get_saved(self, user_id: int, business_user_id: int) -> Optional[SavedDestination]:
        try:
            stmt = select(SavedDestination).where(
                SavedDestination.user_id == user_id,
                SavedDestination.business_user_id == business_user_id,
            )
            return self.session.scalars(stmt).first()
        except SQLAlchemyError as e:
            self._handle_db_error("get_saved", e)

    def add_saved(self, user_id: int, business_user_id: int) -> SavedDestination:
        saved = SavedDestination(user_id=user_id, business_user_id=business_user_id)
        self.session.add(saved)
        return saved

    def delete_saved(self, saved: SavedDestination) -> None:
        self.session.delete(saved)

    def saved_profiles(self, user_id: int) -> list[BusinessProfile]:
        """Profiles bookmarked by a user, newest first."""
        try:
            stmt = (
                select(BusinessProfile)
                .join(SavedDestination, SavedDestination.business_user_id == BusinessProfile.user_id)
                .where(SavedDestination.user_id == user_id)
                .options(joinedload(BusinessProfile.user), joinedload(BusinessProfile.category))
                .order_by(SavedDestination.created_at.desc(), SavedDestination.id.desc())
            )
            return list(self.session.scalars(stmt).unique().all())
        except SQLAlchemyError as e:
            self._handle_db_error("saved_profiles", e)
