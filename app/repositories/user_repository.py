"""User repository for account-related database operations."""
from __future__ import annotations

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import UserNotFoundException
from app.domain.models import RevokedToken, User, utcnow

from .base import BaseRepository


class UserRepository(BaseRepository):
    """Repository for users and revoked access tokens."""

    def get_user(self, user_id: int) -> Optional[User]:
        """Get user by ID.

        Raises:
            DatabaseException: If database operation fails
        """
        try:
            return self.session.get(User, user_id)
        except SQLAlchemyError as e:
            self._handle_db_error("get_user", e)

    def get_user_or_raise(self, user_id: int) -> User:
        """Get user by ID or raise exception.

        Raises:
            UserNotFoundException: If user not found
        """
        user = self.get_user(user_id)
        if user is None:
            raise UserNotFoundException(user_id)
        return user

    def get_by_email(self, email: str) -> Optional[User]:
        try:
            stmt = select(User).where(func.lower(User.email) == email.strip().lower())
            return self.session.scalars(stmt).first()
        except SQLAlchemyError as e:
            self._handle_db_error("get_by_email", e)

    def email_exists(self, email: str) -> bool:
        return self.get_by_email(email) is not None

    def set_status(self, user: User, status: str) -> User:
        user.status = status
        self.flush()
        return user

    # Token revocation

    def revoke_token(self, jti: str, expires_at) -> None:
        if self.session.get(RevokedToken, jti) is None:
            self.session.add(RevokedToken(jti=jti, expires_at=expires_at))
        self.flush()

    def is_token_revoked(self, jti: str) -> bool:
        try:
            return self.session.get(RevokedToken, jti) is not None
        except SQLAlchemyError as e:
            self._handle_db_error("is_token_revoked", e)

    def purge_expired_tokens(self) -> int:
        """Delete revocation rows whose tokens expired anyway."""
        try:
            rows = self.session.scalars(
                select(RevokedToken).where(RevokedToken.expires_at < utcnow())
            ).all()
            for row in rows:
                self.session.delete(row)
            self.flush()
            return len(rows)
        except SQLAlchemyError as e:
            self._handle_db_error("purge_expired_tokens", e)
