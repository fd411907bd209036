from __future__ import annotations

import os

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

# Credential endpoints get a tighter budget than the default
AUTH_LIMIT = os.getenv("RATE_LIMIT_AUTH", "10/minute")
AI_LIMIT = os.getenv("RATE_LIMIT_AI", "20/minute")


def _rate_limit_storage_uri() -> str | None:
    return os.getenv("RATE_LIMIT_REDIS_URL") or os.getenv("REDIS_URL") or None


def _get_client_ip(request: Request) -> str:
    """Resolve client IP with proxy headers support."""
    xff = request.headers.get("X-Forwarded-For")
    if xff:
        parts = [part.strip() for part in xff.split(",") if part.strip()]
        if parts:
            return parts[0]

    x_real_ip = request.headers.get("X-Real-IP")
    if x_real_ip:
        return x_real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return get_remote_address(request)


def _rate_limit_enabled() -> bool:
    return os.getenv("RATE_LIMIT_DISABLED", "").strip().lower() not in {"1", "true", "yes"}


def _default_limits() -> list[str]:
    if not _rate_limit_enabled():
        return []
    return [os.getenv("RATE_LIMIT_DEFAULT", "100/minute")]


limiter = Limiter(
    key_func=_get_client_ip,
    default_limits=_default_limits(),
    storage_uri=_rate_limit_storage_uri() or "memory://",
    enabled=_rate_limit_enabled(),
)


__all__ = ["AI_LIMIT", "AUTH_LIMIT", "limiter"]
