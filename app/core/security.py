"""
Security module - password hashing and access tokens.

Passwords are hashed with bcrypt through passlib; access tokens are HS256
JWTs issued with python-jose. Every token carries a ``jti`` so logout and
refresh can revoke it server-side.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import AuthConfig
from app.core.exceptions import UnauthorizedException

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        logger.warning("Unrecognized password hash format")
        return False


@dataclass(slots=True)
class TokenClaims:
    user_id: int
    role: str
    jti: str
    expires_at: datetime


@dataclass(slots=True)
class IssuedToken:
    access_token: str
    token_type: str
    expires_in: int
    claims: TokenClaims

    def as_dict(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "token_type": self.token_type,
            "expires_in": self.expires_in,
        }


class TokenService:
    """Issue and decode signed access tokens."""

    def __init__(self, config: AuthConfig) -> None:
        self.config = config

    def issue(self, user_id: int, role: str) -> IssuedToken:
        ttl = timedelta(minutes=self.config.token_ttl_minutes)
        expires_at = datetime.now(timezone.utc) + ttl
        jti = uuid.uuid4().hex
        payload = {"sub": str(user_id), "role": role, "jti": jti, "exp": expires_at}
        token = jwt.encode(payload, self.config.jwt_secret, algorithm=self.config.jwt_algorithm)
        return IssuedToken(
            access_token=token,
            token_type="bearer",
            expires_in=int(ttl.total_seconds()),
            claims=TokenClaims(
                user_id=user_id,
                role=role,
                jti=jti,
                expires_at=expires_at.replace(tzinfo=None),
            ),
        )

    def decode(self, token: str) -> TokenClaims:
        """Validate signature and expiry.

        Raises:
            UnauthorizedException: Token is malformed, expired or tampered
        """
        try:
            payload = jwt.decode(
                token, self.config.jwt_secret, algorithms=[self.config.jwt_algorithm]
            )
        except JWTError as e:
            logger.debug(f"Rejected token: {e}")
            raise UnauthorizedException() from e

        sub = payload.get("sub")
        jti = payload.get("jti")
        exp = payload.get("exp")
        if not sub or not jti or exp is None:
            raise UnauthorizedException()
        try:
            user_id = int(sub)
        except (TypeError, ValueError) as e:
            raise UnauthorizedException() from e

        return TokenClaims(
            user_id=user_id,
            role=str(payload.get("role", "")),
            jti=str(jti),
            expires_at=datetime.fromtimestamp(int(exp), tz=timezone.utc).replace(tzinfo=None),
        )
