"""Base repository with common database operations."""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import DatabaseException


class BaseRepository:
    """Base repository class over a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        """Initialize repository with a session.

        Args:
            session: Request- or job-scoped SQLAlchemy session
        """
        self.session = session

    def _handle_db_error(self, operation: str, error: Exception) -> None:
        """Handle database errors consistently.

        Args:
            operation: Name of the operation that failed
            error: Original exception

        Raises:
            DatabaseException: Wrapped database error
        """
        raise DatabaseException(f"Database operation '{operation}' failed: {str(error)}") from error

    def flush(self) -> None:
        """Flush pending changes.

        IntegrityError propagates unchanged so callers can map unique
        violations to domain conflicts.
        """
        try:
            self.session.flush()
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            self._handle_db_error("flush", e)

    def commit(self) -> None:
        """Commit the unit of work, rolling back on failure."""
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            self._handle_db_error("commit", e)

    def rollback(self) -> None:
        self.session.rollback()
