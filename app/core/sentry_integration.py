"""Sentry integration for error tracking and monitoring."""
from __future__ import annotations

import logging
import os
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

logger = logging.getLogger(__name__)

_initialized = False


def init_sentry(
    environment: str = "production",
    enable_logging: bool = True,
    sample_rate: float = 1.0,
    traces_sample_rate: float = 0.1,
) -> bool:
    """Initialize Sentry error tracking.

    Args:
        environment: Environment name (production, staging, development)
        enable_logging: Enable automatic logging integration
        sample_rate: Error sampling rate (1.0 = 100%)
        traces_sample_rate: Performance tracing rate (0.1 = 10%)

    Returns:
        True if Sentry was initialized successfully
    """
    global _initialized

    sentry_dsn = os.getenv("SENTRY_DSN")
    if not sentry_dsn:
        logger.info("SENTRY_DSN not set - error tracking disabled")
        return False

    integrations = []
    if enable_logging:
        # Breadcrumbs from INFO, events from ERROR
        integrations.append(LoggingIntegration(level=logging.INFO, event_level=logging.ERROR))

    try:
        sentry_sdk.init(
            dsn=sentry_dsn,
            environment=environment,
            integrations=integrations,
            sample_rate=sample_rate,
            traces_sample_rate=traces_sample_rate,
            send_default_pii=False,
            release=os.getenv("GIT_COMMIT_SHA", "unknown"),
        )
    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}")
        return False

    _initialized = True
    logger.info(f"Sentry initialized for {environment} environment")
    return True


def capture_exception(error: Exception, **extra: Any) -> None:
    """Capture exception and send to Sentry with additional context."""
    if not _initialized:
        return

    with sentry_sdk.new_scope() as scope:
        for key, value in extra.items():
            scope.set_context(key, value)
        sentry_sdk.capture_exception(error)


def set_user_context(user_id: int, **extra: Any) -> None:
    """Set user context for Sentry events."""
    if not _initialized:
        return
    sentry_sdk.set_user({"id": str(user_id), **extra})
