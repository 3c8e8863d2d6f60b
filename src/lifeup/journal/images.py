"""Journal photo compression to embeddable JPEG data URLs."""

import asyncio
import base64
import binascii
import io

import structlog
from PIL import Image, ImageOps, UnidentifiedImageError

from lifeup.errors import ValidationRejected

logger = structlog.get_logger()

DATA_URL_PREFIX = "data:image/jpeg;base64,"


def compress_image_bytes(data: bytes, max_dimension: int = 800, quality: int = 70) -> str:
    """Shrink an image so its long edge is at most ``max_dimension`` and re-encode it.

    Aspect ratio is preserved and smaller images are not enlarged.

    Args:
        data: Encoded image file contents (any format Pillow can read).
        max_dimension: Maximum width or height in pixels.
        quality: JPEG quality, 1-95.

    Returns:
        A ``data:image/jpeg;base64,...`` URL.

    Raises:
        ValidationRejected: The data is not a readable image.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img = ImageOps.exif_transpose(img).convert("RGB")
            original_size = img.size
            img.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)
            buf = io.BytesIO()
            img.save(buf, format="JPEG", quality=quality, optimize=True)
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
        logger.warning("image_decode_failed", error=str(e))
        raise ValidationRejected("This file could not be read as an image.") from e

    encoded = buf.getvalue()
    logger.debug(
        "image_compressed",
        original_size=original_size,
        size=img.size,
        input_bytes=len(data),
        output_bytes=len(encoded),
    )
    return DATA_URL_PREFIX + base64.b64encode(encoded).decode("ascii")


async def compress_image(data: bytes, max_dimension: int = 800, quality: int = 70) -> str:
    """Compress off the event loop (decode and encode are CPU bound)."""
    return await asyncio.to_thread(compress_image_bytes, data, max_dimension, quality)


def decode_data_url(data_url: str) -> bytes:
    """Inverse of the embedding: raw JPEG bytes of a stored image.

    Raises:
        ValidationRejected: Not a base64 JPEG data URL.
    """
    if not data_url.startswith(DATA_URL_PREFIX):
        raise ValidationRejected("Photos must be JPEG data URLs.")
    try:
        return base64.b64decode(data_url[len(DATA_URL_PREFIX):], validate=True)
    except binascii.Error as e:
        raise ValidationRejected("Photo data is not valid base64.") from e


def check_compressed(data_url: str, max_dimension: int = 800) -> None:
    """Accept only images that already went through ``compress_image_bytes``.

    Raises:
        ValidationRejected: Not a readable JPEG, or larger than ``max_dimension``.
    """
    data = decode_data_url(data_url)
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt, size = img.format, img.size
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, Image.DecompressionBombError) as e:
        raise ValidationRejected("A photo could not be read as an image.") from e
    if fmt != "JPEG" or max(size) > max_dimension:
        logger.warning("image_not_compressed", format=fmt, size=size)
        raise ValidationRejected("Photos must be added through the photo upload.")
