"""Logging setup shared by the API process and the worker."""
from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger("destinations")

_configured = False


def setup_logging(level: str | None = None, log_file: str | None = None) -> logging.Logger:
    """Configure root logging once.

    Args:
        level: Log level name, defaults to LOG_LEVEL env or INFO
        log_file: Optional path for a rotating file handler (LOG_FILE env)

    Returns:
        The application logger
    """
    global _configured
    if _configured:
        return logger

    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    log_file = log_file or os.getenv("LOG_FILE")
    if log_file:
        file_handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # Third-party noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

    _configured = True
    return logger
