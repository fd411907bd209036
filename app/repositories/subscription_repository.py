"""Subscription repository."""
from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.domain.models import Subscription

from .base import BaseRepository


class SubscriptionRepository(BaseRepository):
    """Repository for business subscriptions."""

    def get_current(self, business_user_id: int) -> Optional[Subscription]:
        """Active subscription of a business, falling back to the latest one.

        The gate needs the latest row even when it is no longer active so an
        expired plan is reported as inactive rather than missing.
        """
        try:
            stmt = (
                select(Subscription)
                .where(Subscription.business_user_id == business_user_id)
                .order_by(Subscription.active.desc(), Subscription.end_date.desc(), Subscription.id.desc())
            )
            return self.session.scalars(stmt).first()
        except SQLAlchemyError as e:
            self._handle_db_error("get_current", e)

    def deactivate_all(self, business_user_id: int) -> int:
        """Flip every active subscription of the business to inactive."""
        try:
            rows = self.session.scalars(
                select(Subscription).where(
                    Subscription.business_user_id == business_user_id,
                    Subscription.active.is_(True),
                )
            ).all()
            for row in rows:
                row.active = False
            self.flush()
            return len(rows)
        except SQLAlchemyError as e:
            self._handle_db_error("deactivate_all", e)
