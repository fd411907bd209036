"""Business profile and category repository."""
from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from app.core.exceptions import BusinessProfileNotFoundException
from app.domain.models import BusinessProfile, Category, User
from app.domain.value_objects import UserStatus

from .base import BaseRepository


def _contains(column, term: str):
    """Case-insensitive substring match portable across PostgreSQL and SQLite."""
    escaped = term.strip().lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return func.lower(column).like(f"%{escaped}%", escape="\\")


class BusinessRepository(BaseRepository):
    """Repository for destinations (business profiles) and categories."""

    def _profiles(self):
        return select(BusinessProfile).options(
            joinedload(BusinessProfile.user), joinedload(BusinessProfile.category)
        )

    def get_profile(self, business_user_id: int) -> Optional[BusinessProfile]:
        """Get business profile by owning user ID."""
        try:
            stmt = self._profiles().where(BusinessProfile.user_id == business_user_id)
            return self.session.scalars(stmt).first()
        except SQLAlchemyError as e:
            self._handle_db_error("get_profile", e)

    def get_profile_or_raise(self, business_user_id: int) -> BusinessProfile:
        profile = self.get_profile(business_user_id)
        if profile is None:
            raise BusinessProfileNotFoundException()
        return profile

    def list_profiles(
        self,
        *,
        status: str | None = UserStatus.ACTIVE.value,
        name: str | None = None,
        district: str | None = None,
        category_id: int | None = None,
        category_names: Iterable[str] | None = None,
        random_order: bool = False,
    ) -> list[BusinessProfile]:
        """List profiles filtered by owner status and optional criteria."""
        stmt = self._profiles().join(BusinessProfile.user)
        if status is not None:
            stmt = stmt.where(User.status == status)
        if name:
            stmt = stmt.where(_contains(BusinessProfile.business_name, name))
        if district:
            stmt = stmt.where(_contains(BusinessProfile.district, district))
        if category_id is not None:
            stmt = stmt.where(BusinessProfile.category_id == category_id)
        if category_names is not None:
            names = [n.strip() for n in category_names if n and n.strip()]
            if not names:
                return []
            stmt = stmt.join(BusinessProfile.category).where(Category.name.in_(names))
        stmt = stmt.order_by(func.random() if random_order else BusinessProfile.id)
        try:
            return list(self.session.scalars(stmt).unique().all())
        except SQLAlchemyError as e:
            self._handle_db_error("list_profiles", e)

    def business_names(self) -> list[tuple[int, str]]:
        """(user_id, business_name) pairs of active destinations."""
        stmt = (
            select(BusinessProfile.user_id, BusinessProfile.business_name)
            .join(BusinessProfile.user)
            .where(User.status == UserStatus.ACTIVE.value)
        )
        try:
            return [(row[0], row[1]) for row in self.session.execute(stmt).all()]
        except SQLAlchemyError as e:
            self._handle_db_error("business_names", e)

    # Categories

    def list_categories(self) -> list[Category]:
        try:
            return list(self.session.scalars(select(Category).order_by(Category.id)).all())
        except SQLAlchemyError as e:
            self._handle_db_error("list_categories", e)

    def get_category(self, category_id: int) -> Optional[Category]:
        try:
            return self.session.get(Category, category_id)
        except SQLAlchemyError as e:
            self._handle_db_error("get_category", e)

    def find_category_by_name(self, name: str) -> Optional[Category]:
        """First category whose name contains ``name`` (case-insensitive)."""
        stmt = select(Category).where(_contains(Category.name, name)).order_by(Category.id)
        try:
            return self.session.scalars(stmt).first()
        except SQLAlchemyError as e:
            self._handle_db_error("find_category_by_name", e)
