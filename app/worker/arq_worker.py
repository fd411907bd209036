"""Arq worker for image lifecycle jobs."""
from __future__ import annotations

import logging
import os
from typing import Any

from arq import Retry, cron
from arq.connections import RedisSettings

from app.core.config import load_settings
from app.core.database import create_engine_from_url, create_session_factory, session_scope
from app.core.logging_config import setup_logging
from app.core.storage import LocalObjectStorage, TempUploadStore
from app.domain.value_objects import ImageState
from app.repositories import ImageRepository, UserRepository

logger = logging.getLogger(__name__)

MAX_TRIES = 3
RETRY_DELAYS = (10, 30, 60)


def retry_delay(attempt: int) -> int:
    """Seconds to wait after ``attempt`` failed (1-based)."""
    return RETRY_DELAYS[min(attempt, len(RETRY_DELAYS)) - 1]


async def startup(ctx: dict[str, Any]) -> None:
    settings = load_settings()
    setup_logging(settings.log_level)
    engine = create_engine_from_url(settings.database_url)
    ctx["engine"] = engine
    ctx["sessions"] = create_session_factory(engine)
    ctx["storage"] = LocalObjectStorage(settings.storage.root, settings.storage.public_url)
    ctx["temp_store"] = TempUploadStore(settings.storage.temp_dir)


async def shutdown(ctx: dict[str, Any]) -> None:
    engine = ctx.get("engine")
    if engine is not None:
        engine.dispose()


def _retry_or_give_up(ctx: dict[str, Any], job: str, error: Exception) -> None:
    attempt = int(ctx.get("job_try", 1))
    if attempt < MAX_TRIES:
        delay = retry_delay(attempt)
        logger.warning(f"{job} attempt {attempt} failed ({error}), retrying in {delay}s")
        raise Retry(defer=delay) from error
    logger.error(f"{job} failed permanently after {attempt} attempts: {error}", exc_info=error)


def _abandon_upload(ctx: dict[str, Any], image_id: int, temp_path: str, path_name: str) -> None:
    """Drop a staged upload that could not be promoted so it stops showing up."""
    TempUploadStore.discard(temp_path)
    try:
        with session_scope(ctx["sessions"]) as session:
            images = ImageRepository(session)
            image = images.get_image(image_id)
            if image is not None and image.state != ImageState.COMMITTED.value:
                ctx["storage"].delete(path_name)
                images.delete_image(image)
    except Exception as e:
        logger.error(f"Could not discard failed upload {image_id}: {e}", exc_info=e)


async def promote_image(ctx: dict[str, Any], image_id: int, temp_path: str, path_name: str) -> str:
    """Move a staged upload into permanent storage and mark it committed.

    Safe to run more than once: a committed or deleted image is skipped.
    """
    storage = ctx["storage"]
    try:
        with session_scope(ctx["sessions"]) as session:
            images = ImageRepository(session)
            image = images.get_image(image_id)
            if image is None or image.state == ImageState.PENDING_DELETE.value:
                TempUploadStore.discard(temp_path)
                return "skipped"
            if image.state == ImageState.COMMITTED.value:
                TempUploadStore.discard(temp_path)
                return "already_committed"

            if not storage.exists(path_name):
                storage.put(temp_path, path_name)
            images.set_state(image, ImageState.COMMITTED)
        TempUploadStore.discard(temp_path)
    except Exception as e:
        _retry_or_give_up(ctx, f"promote_image({image_id})", e)
        _abandon_upload(ctx, image_id, temp_path, path_name)
        return "failed"

    logger.info(f"Image {image_id} committed to {path_name}")
    return "committed"


async def delete_image_objects(ctx: dict[str, Any], image_ids: list[int]) -> int:
    """Delete stored objects, then their rows. Missing objects or rows are fine."""
    storage = ctx["storage"]
    try:
        with session_scope(ctx["sessions"]) as session:
            images = ImageRepository(session)
            removed = 0
            for image in images.get_many(image_ids):
                storage.delete(image.path_name)
                images.delete_image(image)
                removed += 1
    except Exception as e:
        _retry_or_give_up(ctx, f"delete_image_objects({image_ids})", e)
        return 0

    logger.info(f"Deleted {removed} image(s)")
    return removed


async def purge_revoked_tokens(ctx: dict[str, Any]) -> int:
    with session_scope(ctx["sessions"]) as session:
        purged = UserRepository(session).purge_expired_tokens()
    if purged:
        logger.info(f"Purged {purged} expired token revocations")
    return purged


def _redis_settings() -> RedisSettings:
    redis_url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    return RedisSettings.from_dsn(redis_url)


class WorkerSettings:
    redis_settings = _redis_settings()
    functions = [promote_image, delete_image_objects]
    cron_jobs = [cron(purge_revoked_tokens, hour={3}, minute={0})]
    on_startup = startup
    on_shutdown = shutdown
    max_tries = MAX_TRIES
