"""Producer side of the background job queue."""
from __future__ import annotations

import logging
from typing import Any, Protocol

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings

logger = logging.getLogger(__name__)

PROMOTE_IMAGE_JOB = "promote_image"
DELETE_IMAGES_JOB = "delete_image_objects"


class JobQueue(Protocol):
    async def enqueue(self, job_name: str, *args: Any) -> None:
        ...


class ArqJobQueue:
    """Enqueue jobs on the arq Redis queue, connecting lazily."""

    def __init__(self, redis_url: str) -> None:
        self.redis_settings = RedisSettings.from_dsn(redis_url)
        self._pool: ArqRedis | None = None

    async def _get_pool(self) -> ArqRedis:
        if self._pool is None:
            self._pool = await create_pool(self.redis_settings)
        return self._pool

    async def enqueue(self, job_name: str, *args: Any) -> None:
        pool = await self._get_pool()
        job = await pool.enqueue_job(job_name, *args)
        logger.info(f"Enqueued {job_name} ({job.job_id if job else 'duplicate'})")

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.aclose()
            self._pool = None
