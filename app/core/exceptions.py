"""Custom exceptions for the directory API.

Each exception carries the HTTP status code used when it reaches the API
boundary, so services can raise domain errors without importing FastAPI.
"""
from __future__ import annotations


class DirectoryException(Exception):
    """Base exception for all directory errors."""

    status_code = 500

    def __init__(self, message: str, *args: object) -> None:
        super().__init__(message, *args)
        self.message = message


class DatabaseException(DirectoryException):
    """Database-related errors."""

    pass


class ValidationException(DirectoryException):
    """Input validation errors."""

    status_code = 422


class UnauthorizedException(DirectoryException):
    """Missing or invalid credentials."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class ForbiddenException(DirectoryException):
    """Authenticated but not allowed."""

    status_code = 403


class NotFoundException(DirectoryException):
    """Referenced entity does not exist."""

    status_code = 404


class ConflictException(DirectoryException):
    """Request conflicts with current state (duplicates, full slots)."""

    status_code = 409


class UpstreamException(DirectoryException):
    """A third-party service (payments, text generation) failed."""

    status_code = 500


class UserNotFoundException(NotFoundException):
    """User not found in database."""

    def __init__(self, user_id: int) -> None:
        super().__init__(f"User with ID {user_id} not found")
        self.user_id = user_id


class BusinessProfileNotFoundException(NotFoundException):
    """Business profile not found for a user."""

    def __init__(self, message: str = "Business profile not found.") -> None:
        super().__init__(message)
