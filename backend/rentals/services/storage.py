# rentals/services/storage.py
"""Disk-backed store for listing images, served under /uploads."""
import logging
import random
import time
from pathlib import Path
from typing import List

from fastapi import UploadFile

from rentals.core.config import get_settings
from rentals.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".webp"}
ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}

PROPERTY_IMAGES = "properties"


def upload_root() -> Path:
    return Path(get_settings().UPLOAD_DIR)


def property_image_dir() -> Path:
    path = upload_root() / PROPERTY_IMAGES
    path.mkdir(parents=True, exist_ok=True)
    return path


def _unique_name(field_name: str, suffix: str) -> str:
    return f"{field_name}-{int(time.time() * 1000)}-{random.randint(0, 10**9)}{suffix}"


def validate_image(upload: UploadFile, content: bytes) -> str:
    """Return the normalized extension, or raise if the file is not an acceptable image."""
    suffix = Path(upload.filename or "").suffix.lower()
    if suffix not in ALLOWED_EXTENSIONS or upload.content_type not in ALLOWED_CONTENT_TYPES:
        raise ValidationError("File upload only supports images (jpeg, jpg, png, webp)")

    max_bytes = get_settings().MAX_IMAGE_SIZE_MB * 1024 * 1024
    if len(content) > max_bytes:
        raise ValidationError(f"Each image must be at most {get_settings().MAX_IMAGE_SIZE_MB}MB")
    return suffix


async def save_property_images(uploads: List[UploadFile]) -> List[str]:
    """
    Validate every upload first, then write them all. Returns public URLs.
    Nothing is written when any file is rejected.
    """
    max_bytes = get_settings().MAX_IMAGE_SIZE_MB * 1024 * 1024
    staged = []
    for upload in uploads:
        # one byte past the limit is enough to reject an oversized file
        content = await upload.read(max_bytes + 1)
        suffix = validate_image(upload, content)
        staged.append((suffix, content))

    target_dir = property_image_dir()
    urls = []
    for suffix, content in staged:
        filename = _unique_name("images", suffix)
        dest = target_dir / filename
        with dest.open("wb") as f:
            f.write(content)
        urls.append(f"/uploads/{PROPERTY_IMAGES}/{filename}")
    return urls


def delete_property_image(url: str) -> None:
    """Remove the file behind a stored URL; missing files are ignored."""
    path = upload_root() / PROPERTY_IMAGES / Path(url).name
    if path.exists():
        path.unlink()
        logger.info("Removed image file %s", path)
