"""Async helper wrappers for sync database code."""
from __future__ import annotations

from typing import Any, Callable, TypeVar

import anyio

T = TypeVar("T")


async def run_sync(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run a blocking callable in a worker thread."""
    return await anyio.to_thread.run_sync(lambda: func(*args, **kwargs))

