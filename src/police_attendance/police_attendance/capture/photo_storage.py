from __future__ import annotations

import io
import logging
from datetime import datetime
from pathlib import Path
from typing import Protocol

from PIL import Image, UnidentifiedImageError

from ..core.constants import PHOTO_JPEG_QUALITY
from ..core.exceptions import BackendUnavailableError, ValidationError

logger = logging.getLogger(__name__)


class PhotoStorage(Protocol):
    def upload(self, *, user_id: int, taken_at: datetime, data: bytes) -> str:
        """Store a punch photo and return its public URL."""

        raise NotImplementedError


def normalize_jpeg(data: bytes, *, quality: int = PHOTO_JPEG_QUALITY) -> bytes:
    """Validate an uploaded image and re-encode it as an RGB JPEG."""

    if not data:
        raise ValidationError("Photo is empty")
    try:
        with Image.open(io.BytesIO(data)) as probe:
            probe.verify()
        with Image.open(io.BytesIO(data)) as img:
            out = io.BytesIO()
            img.convert("RGB").save(out, format="JPEG", quality=quality)
            return out.getvalue()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ValidationError("Photo is not a valid image") from e


class LocalPhotoStorage(PhotoStorage):
    """Photos under `<root>/<user_id>/<timestamp>.jpg`, served from `public_base_url`."""

    def __init__(self, root: str | Path, *, public_base_url: str):
        self._root = Path(root)
        self._base_url = public_base_url.rstrip("/")

    def upload(self, *, user_id: int, taken_at: datetime, data: bytes) -> str:
        jpeg = normalize_jpeg(data)
        name = taken_at.strftime("%Y%m%dT%H%M%S%f") + ".jpg"
        rel = f"{int(user_id)}/{name}"
        target = self._root / str(int(user_id)) / name
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(jpeg)
        except OSError as e:
            logger.error("photo upload failed for user %s: %s", user_id, e)
            raise BackendUnavailableError("Photo storage is unavailable") from e
        return f"{self._base_url}/{rel}"
