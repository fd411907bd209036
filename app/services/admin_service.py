"""Admin services: account moderation."""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.core.exceptions import ConflictException, ValidationException
from app.domain.models import User
from app.domain.value_objects import UserStatus
from app.repositories import UserRepository

logger = logging.getLogger(__name__)


class AdminService:
    """Ban and unban accounts."""

    def __init__(self, session: Session, user_repo: UserRepository | None = None) -> None:
        self._users = user_repo or UserRepository(session)

    def ban(self, admin: User, user_id: int) -> User:
        """Mark an account as banned; its destination disappears from listings.

        Raises:
            UserNotFoundException: Unknown user
            ConflictException: Already banned
        """
        user = self._users.get_user_or_raise(user_id)
        if user.id == admin.id:
            raise ValidationException("Admins cannot ban themselves.")
        if user.is_banned:
            raise ConflictException("User is already banned.")
        self._users.set_status(user, UserStatus.BANNED.value)
        self._users.commit()
        logger.info(f"Admin {admin.id} banned user {user.id}")
        return user

    def unban(self, admin: User, user_id: int) -> User:
        user = self._users.get_user_or_raise(user_id)
        if not user.is_banned:
            raise ConflictException("User is not banned.")
        self._users.set_status(user, UserStatus.ACTIVE.value)
        self._users.commit()
        logger.info(f"Admin {admin.id} unbanned user {user.id}")
        return user
