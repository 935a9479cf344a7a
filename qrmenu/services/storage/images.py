"""
Image validation and optimization for uploads.

Uploads are checked for type and size, decoded with Pillow (so a file that
only claims to be an image is rejected), downscaled to fit the configured
box and re-encoded.
"""

import logging
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from qrmenu.core.config import get_settings
from qrmenu.core.exceptions import ValidationFailedError
from qrmenu.services.storage.base import EXTENSIONS

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = frozenset(EXTENSIONS)
JPEG_QUALITY = 85
WEBP_QUALITY = 85


def validate_image(data: bytes, content_type: str) -> None:
    settings = get_settings()
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationFailedError(
            "Invalid file type",
            detail=f"Allowed: {', '.join(sorted(ALLOWED_IMAGE_TYPES))}",
        )
    if not data:
        raise ValidationFailedError("File is empty")
    if len(data) > settings.max_image_bytes:
        raise ValidationFailedError(
            "File too large",
            detail=f"Max size: {settings.max_image_bytes // (1024 * 1024)}MB",
        )


def optimize_image(data: bytes, content_type: str) -> bytes:
    """
    Validate, resize and re-encode an uploaded image.

    Raises:
        ValidationFailedError: wrong type, too large, or not decodable
    """
    validate_image(data, content_type)
    max_side = get_settings().max_image_dimension

    try:
        image = Image.open(BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationFailedError("File is not a valid image") from e

    if content_type == "image/jpeg" and image.mode in ("RGBA", "LA", "P"):
        # JPEG has no alpha: flatten onto white
        if image.mode == "P":
            image = image.convert("RGBA")
        background = Image.new("RGB", image.size, (255, 255, 255))
        background.paste(image, mask=image.split()[-1] if image.mode in ("RGBA", "LA") else None)
        image = background
    elif content_type == "image/jpeg" and image.mode not in ("RGB", "L"):
        image = image.convert("RGB")

    width, height = image.size
    if width > max_side or height > max_side:
        image.thumbnail((max_side, max_side), Image.Resampling.LANCZOS)
        logger.info(f"Image resized: {width}x{height} -> {image.size[0]}x{image.size[1]}")

    output = BytesIO()
    if content_type == "image/jpeg":
        image.save(output, format="JPEG", quality=JPEG_QUALITY, optimize=True)
    elif content_type == "image/webp":
        image.save(output, format="WEBP", quality=WEBP_QUALITY, method=6)
    else:
        image.save(output, format="PNG", optimize=True)

    optimized = output.getvalue()
    logger.info(f"Image optimized: {len(data) / 1024:.1f}KB -> {len(optimized) / 1024:.1f}KB")
    return optimized
