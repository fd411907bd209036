"""Object storage and image validation helpers."""
from __future__ import annotations

import io
import logging
import os
import shutil
import uuid
from pathlib import Path
from typing import Protocol

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_FORMATS = {"JPEG": "jpg", "PNG": "png", "WEBP": "webp", "GIF": "gif"}


def detect_image_extension(file_data: bytes, max_size_mb: int = 5) -> str | None:
    """Validate image bytes and return the canonical extension.

    Returns None when the payload is empty, larger than ``max_size_mb`` or
    not a decodable JPEG/PNG/WEBP/GIF.
    """
    if not file_data or len(file_data) > max_size_mb * 1024 * 1024:
        return None
    try:
        with Image.open(io.BytesIO(file_data)) as img:
            img.verify()
            return ALLOWED_IMAGE_FORMATS.get(img.format or "")
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        return None


class ObjectStorage(Protocol):
    """Permanent storage for user images."""

    def put(self, source_path: str, path_name: str) -> None:
        ...

    def exists(self, path_name: str) -> bool:
        ...

    def delete(self, path_name: str) -> None:
        ...

    def url(self, path_name: str) -> str:
        ...


class LocalObjectStorage:
    """Filesystem-backed object storage served under a public base URL."""

    def __init__(self, root: str, public_url: str) -> None:
        self.root = Path(root)
        self.public_url = public_url.rstrip("/")

    def _resolve(self, path_name: str) -> Path:
        target = (self.root / path_name).resolve()
        if self.root.resolve() not in target.parents:
            raise ValueError(f"Path escapes storage root: {path_name}")
        return target

    def put(self, source_path: str, path_name: str) -> None:
        target = self._resolve(path_name)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source_path, target)

    def exists(self, path_name: str) -> bool:
        return self._resolve(path_name).is_file()

    def delete(self, path_name: str) -> None:
        target = self._resolve(path_name)
        try:
            target.unlink()
        except FileNotFoundError:
            logger.debug(f"Object already absent: {path_name}")

    def url(self, path_name: str) -> str:
        return f"{self.public_url}/{path_name}"


class TempUploadStore:
    """Local staging area for uploads awaiting promotion."""

    def __init__(self, temp_dir: str) -> None:
        self.temp_dir = Path(temp_dir)

    def write(self, data: bytes, extension: str) -> str:
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        path = self.temp_dir / f"{uuid.uuid4().hex}.{extension}"
        path.write_bytes(data)
        return str(path)

    @staticmethod
    def discard(path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
