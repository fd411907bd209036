"""Authorization gate for business-only operations."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.core.exceptions import (
    BusinessProfileNotFoundException,
    ForbiddenException,
    NotFoundException,
    UnauthorizedException,
)
from app.domain.models import BusinessProfile, Subscription, User, utcnow
from app.repositories import BusinessRepository, SubscriptionRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BusinessContext:
    """A business user that passed the gate."""

    user: User
    profile: BusinessProfile
    subscription: Subscription


class SubscriptionGate:
    """Check role, profile and subscription validity of a business user.

    An expired subscription is persisted as inactive before the request is
    rejected, so the flip survives even though the request fails.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self.businesses = BusinessRepository(session)
        self.subscriptions = SubscriptionRepository(session)

    def check(self, user: User | None) -> BusinessContext:
        if user is None:
            raise UnauthorizedException()
        if not user.is_business:
            raise ForbiddenException("Access denied. Business authorization required.")

        profile = self.businesses.get_profile(user.id)
        if profile is None:
            raise BusinessProfileNotFoundException()

        subscription = self.subscriptions.get_current(user.id)
        if subscription is None:
            raise NotFoundException("No active subscription found.")

        if subscription.end_date < utcnow() or not subscription.active:
            if subscription.active:
                subscription.active = False
                self.subscriptions.commit()
                logger.info(f"Subscription {subscription.id} of user {user.id} expired")
            raise ForbiddenException("Inactive business subscription.")

        return BusinessContext(user=user, profile=profile, subscription=subscription)
