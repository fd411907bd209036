"""Image lifecycle: staged uploads and deferred deletion."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import PurePath
from typing import Sequence

from sqlalchemy.orm import Session

from app.core.async_db import run_sync
from app.core.exceptions import ValidationException
from app.core.storage import ObjectStorage, TempUploadStore, detect_image_extension
from app.core.utils import slugify
from app.domain.models import Image, User
from app.domain.value_objects import ImageState
from app.repositories import ImageRepository
from app.worker.job_queue import DELETE_IMAGES_JOB, PROMOTE_IMAGE_JOB, JobQueue

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class UploadedFile:
    filename: str
    content: bytes


def build_path_name(user_id: int, filename: str, extension: str, timestamp: int | None = None) -> str:
    """``users/{id}/{timestamp}-{slug}.{ext}``"""
    stem = PurePath(filename or "image").stem
    ts = int(time.time()) if timestamp is None else timestamp
    return f"users/{user_id}/{ts}-{slugify(stem)}.{extension}"


class ImageService:
    """Write image rows immediately and defer storage work to the job queue."""

    def __init__(
        self,
        session: Session,
        storage: ObjectStorage,
        temp_store: TempUploadStore,
        jobs: JobQueue,
        max_image_mb: int = 5,
    ) -> None:
        self.images = ImageRepository(session)
        self.storage = storage
        self.temp_store = temp_store
        self.jobs = jobs
        self.max_image_mb = max_image_mb

    def serialize(self, image: Image) -> dict:
        return {
            "id": image.id,
            "url": self.storage.url(image.path_name),
            "path_name": image.path_name,
            "state": image.state,
            "is_3d": bool(image.is_3d),
            "created_at": image.created_at.isoformat() if image.created_at else None,
        }

    def list_images(self, owner: User) -> list[dict]:
        return [self.serialize(image) for image in self.images.list_visible(owner.id)]

    def _stage(self, owner: User, files: Sequence[UploadedFile]) -> list[tuple[Image, str]]:
        staged: list[tuple[Image, str]] = []
        for upload in files:
            extension = detect_image_extension(upload.content, self.max_image_mb)
            if extension is None:
                logger.warning(f"Skipping invalid image {upload.filename!r} from user {owner.id}")
                continue
            temp_path = self.temp_store.write(upload.content, extension)
            image = self.images.add_image(owner.id, build_path_name(owner.id, upload.filename, extension))
            staged.append((image, temp_path))
        self.images.commit()
        return staged

    async def upload(self, owner: User, files: Sequence[UploadedFile]) -> list[dict]:
        """Stage valid files and enqueue their promotion to permanent storage.

        Files failing validation are skipped; an all-invalid batch is rejected.
        """
        if not files:
            raise ValidationException("The images field is required.")

        staged = await run_sync(self._stage, owner, files)
        if not staged:
            raise ValidationException(
                f"Each image must be a JPEG, PNG, WEBP or GIF no larger than {self.max_image_mb}MB."
            )

        for image, temp_path in staged:
            await self.jobs.enqueue(PROMOTE_IMAGE_JOB, image.id, temp_path, image.path_name)
        logger.info(f"User {owner.id} queued {len(staged)} image upload(s)")
        return [self.serialize(image) for image, _ in staged]

    def _mark_for_delete(self, owner: User, image_ids: Sequence[int]) -> list[int]:
        wanted = set(image_ids)
        images = self.images.get_many(wanted)
        found = {image.id for image in images if image.user_id == owner.id}
        if found != wanted:
            missing = sorted(wanted - found)
            raise ValidationException(f"Images not found for this user: {missing}")
        for image in images:
            self.images.set_state(image, ImageState.PENDING_DELETE)
        self.images.commit()
        return sorted(found)

    async def delete(self, owner: User, image_ids: Sequence[int]) -> list[int]:
        """Hide the images now and enqueue removal of objects and rows."""
        ids = await run_sync(self._mark_for_delete, owner, image_ids)
        await self.jobs.enqueue(DELETE_IMAGES_JOB, ids)
        logger.info(f"User {owner.id} queued deletion of images {ids}")
        return ids
