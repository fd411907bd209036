"""Image repository."""
from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.domain.models import Image
from app.domain.value_objects import ImageState

from .base import BaseRepository

VISIBLE_STATES = (ImageState.PENDING_UPLOAD.value, ImageState.COMMITTED.value)


class ImageRepository(BaseRepository):
    """Repository for user images."""

    def get_image(self, image_id: int) -> Optional[Image]:
        try:
            return self.session.get(Image, image_id)
        except SQLAlchemyError as e:
            self._handle_db_error("get_image", e)

    def add_image(self, user_id: int, path_name: str) -> Image:
        image = Image(user_id=user_id, path_name=path_name, state=ImageState.PENDING_UPLOAD.value)
        self.session.add(image)
        self.flush()
        return image

    def list_visible(self, user_id: int) -> list[Image]:
        """Images not scheduled for deletion."""
        try:
            stmt = (
                select(Image)
                .where(Image.user_id == user_id, Image.state.in_(VISIBLE_STATES))
                .order_by(Image.created_at.desc(), Image.id.desc())
            )
            return list(self.session.scalars(stmt).all())
        except SQLAlchemyError as e:
            self._handle_db_error("list_visible", e)

    def get_many(self, image_ids: Iterable[int]) -> list[Image]:
        ids = list(image_ids)
        if not ids:
            return []
        try:
            return list(self.session.scalars(select(Image).where(Image.id.in_(ids))).all())
        except SQLAlchemyError as e:
            self._handle_db_error("get_many", e)

    def set_state(self, image: Image, state: ImageState) -> None:
        image.state = state.value

    def delete_image(self, image: Image) -> None:
        self.session.delete(image)
