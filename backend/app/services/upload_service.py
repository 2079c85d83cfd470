"""
Event image uploads.

Files arrive fully read from the multipart body; nothing is streamed.
Each accepted file is written to <UPLOAD_DIR>/events/<uuid4>-<epoch ms><ext>
and recorded on the event as "uploads/events/<name>".
"""

import os
import time
import uuid
from dataclasses import dataclass
from pathlib import Path

from app.core.config import get_settings
from app.core.exceptions import ValidationFailed
from app.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
ALLOWED_MIME_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}
PUBLIC_PREFIX = "uploads/events"


@dataclass
class IncomingImage:
    filename: str
    content_type: str
    data: bytes


def validate_images(images: list[IncomingImage]) -> None:
    """Reject the whole batch if any file breaks the count, type or size limits."""
    if len(images) > settings.MAX_UPLOAD_FILES:
        raise ValidationFailed(
            f"Too many images: at most {settings.MAX_UPLOAD_FILES} allowed, received {len(images)}"
        )

    for image in images:
        extension = os.path.splitext(image.filename or "")[1].lower()
        if extension not in ALLOWED_EXTENSIONS:
            raise ValidationFailed(
                f"File format not allowed: {image.filename}. Accepted: jpg, jpeg, png, gif, webp"
            )
        if image.content_type not in ALLOWED_MIME_TYPES:
            raise ValidationFailed(f"File type not allowed. MIME type: {image.content_type}")
        if len(image.data) > settings.MAX_UPLOAD_SIZE:
            raise ValidationFailed(
                f"File {image.filename} exceeds the maximum size of "
                f"{settings.MAX_UPLOAD_SIZE // (1024 * 1024)} MB"
            )


def save_event_images(images: list[IncomingImage], upload_dir: str | None = None) -> list[str]:
    """Validate and store images. Returns the stored public paths."""
    if not images:
        return []
    validate_images(images)

    target = Path(upload_dir or settings.UPLOAD_DIR) / "events"
    target.mkdir(parents=True, exist_ok=True)

    paths = []
    for image in images:
        extension = os.path.splitext(image.filename)[1].lower()
        name = f"{uuid.uuid4()}-{int(time.time() * 1000)}{extension}"
        (target / name).write_bytes(image.data)
        paths.append(f"{PUBLIC_PREFIX}/{name}")

    logger.info("event_images_saved", count=len(paths))
    return paths


def discard_event_images(paths: list[str], upload_dir: str | None = None) -> None:
    """Remove files written by `save_event_images` whose event was never stored."""
    target = Path(upload_dir or settings.UPLOAD_DIR) / "events"
    for path in paths:
        (target / path.rsplit("/", 1)[-1]).unlink(missing_ok=True)
    if paths:
        logger.info("event_images_discarded", count=len(paths))
