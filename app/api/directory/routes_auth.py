from fastapi import APIRouter, Depends, Request

from app.core.async_db import run_sync
from app.core.security import TokenClaims
from app.domain.models import User
from app.domain.models.requests import LoginRequest, RegisterRequest

from ..common import envelope, get_auth_service, get_current_user, get_token_claims
from ..rate_limit import AUTH_LIMIT, limiter

router = APIRouter(tags=["auth"])


@router.post("/register", status_code=201)
@limiter.limit(AUTH_LIMIT)
async def register(request: Request, payload: RegisterRequest, auth=Depends(get_auth_service)):
    """Create a normal or business account; business accounts pay up front."""
    data = await auth.register(payload)
    return envelope(data, "User registered successfully")


@router.post("/login")
@limiter.limit(AUTH_LIMIT)
async def login(request: Request, payload: LoginRequest, auth=Depends(get_auth_service)):
    data = await run_sync(auth.login, payload)
    return envelope(data, "Login successful")


@router.post("/admin/login")
@limiter.limit(AUTH_LIMIT)
async def admin_login(request: Request, payload: LoginRequest, auth=Depends(get_auth_service)):
    data = await run_sync(auth.admin_login, payload)
    return envelope(data, "Admin login successful")


@router.get("/me")
async def me(user: User = Depends(get_current_user), auth=Depends(get_auth_service)):
    data = await run_sync(auth.me, user)
    return envelope(data, "Current user")


@router.post("/logout")
async def logout(
    user: User = Depends(get_current_user),
    claims: TokenClaims = Depends(get_token_claims),
    auth=Depends(get_auth_service),
):
    await run_sync(auth.logout, claims)
    return envelope(None, "Successfully logged out")


@router.post("/refresh")
async def refresh(
    user: User = Depends(get_current_user),
    claims: TokenClaims = Depends(get_token_claims),
    auth=Depends(get_auth_service),
):
    data = await run_sync(auth.refresh, user, claims)
    return envelope(data, "Token refreshed")
