"""
Image checks and server-side downscaling.

Uploads wider than the configured maximum are scaled to that width (aspect
ratio kept) and re-encoded as JPEG; anything narrower is stored untouched.
"""

from io import BytesIO
from typing import NamedTuple

from PIL import Image, UnidentifiedImageError

from huddle.config.settings import settings
from huddle.core.errors import ValidationFailed

MB = 1024 * 1024
ALLOWED_IMAGE_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}


class ProcessedImage(NamedTuple):
    content: bytes
    content_type: str
    extension: str


def validate_image_file(content_type: str, size: int, max_bytes: int) -> None:
    if size == 0:
        raise ValidationFailed("Please choose an image to upload")
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationFailed("Unsupported image type (JPG, PNG, WebP or GIF only)")
    if size > max_bytes:
        raise ValidationFailed(f"Images must be {max_bytes // MB}MB or smaller")


def resize_image(
    content: bytes,
    content_type: str,
    max_width: int = None,
    quality: int = None
) -> ProcessedImage:
    max_width = max_width or settings.image_max_width
    quality = quality or settings.image_quality

    try:
        image = Image.open(BytesIO(content))
        image.load()
        width, height = image.size
    except (UnidentifiedImageError, OSError):
        raise ValidationFailed("Could not read the image")

    if width <= max_width:
        return ProcessedImage(content, content_type, ALLOWED_IMAGE_TYPES.get(content_type, "jpg"))

    new_height = round(height * max_width / width)
    resized = image.convert("RGB").resize((max_width, new_height), Image.Resampling.LANCZOS)
    out = BytesIO()
    resized.save(out, format="JPEG", quality=quality, optimize=True)
    return ProcessedImage(out.getvalue(), "image/jpeg", "jpg")
