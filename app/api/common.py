"""Shared dependencies and response helpers for the REST routes."""
from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.exceptions import ForbiddenException, UnauthorizedException
from app.core.security import TokenClaims
from app.core.sentry_integration import set_user_context
from app.domain.models import User
from app.services import AuthService, BusinessContext, ImageService, SubscriptionGate

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def envelope(data: Any = None, message: str = "", status: str = "success") -> dict[str, Any]:
    """Uniform ``{status, message, data}`` response body."""
    return {"status": status, "message": message, "data": data}


# =============================================================================
# Dependencies
# =============================================================================


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Iterator[Session]:
    """Request-scoped session; uncommitted work is rolled back on close."""
    session = request.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


def get_auth_service(request: Request, db: Session = Depends(get_db)) -> AuthService:
    state = request.app.state
    return AuthService(db, state.token_service, state.payments)


def get_token_claims(request: Request) -> TokenClaims:
    claims = getattr(request.state, "token_claims", None)
    if claims is None:
        raise UnauthorizedException()
    return claims


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth: AuthService = Depends(get_auth_service),
) -> User:
    """Resolve the bearer token to an active user."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedException()
    user, claims = auth.resolve_token(credentials.credentials)
    request.state.token_claims = claims
    set_user_context(user.id, role=user.role)
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise ForbiddenException("Access denied. Admins only.")
    return user


def require_business_subscription(
    user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> BusinessContext:
    """Gate for business-only routes: role, profile and live subscription."""
    return SubscriptionGate(db).check(user)


def require_owner_or_admin(user_id: int, user: User) -> None:
    if user.id != user_id and not user.is_admin:
        raise ForbiddenException("Access denied.")


def get_image_service(request: Request, db: Session = Depends(get_db)) -> ImageService:
    state = request.app.state
    settings: Settings = state.settings
    return ImageService(
        db,
        storage=state.storage,
        temp_store=state.temp_store,
        jobs=state.jobs,
        max_image_mb=settings.storage.max_image_mb,
    )
