"""Image decoding for the raster fallback path."""

from __future__ import annotations

from io import BytesIO

from PIL import Image as PILImage
from PIL import UnidentifiedImageError

from lan_printer.const import LOGGER
from lan_printer.exceptions import EncodingError


def decode_to_rgb(data: bytes) -> tuple[bytes, int, int]:
    """
    Decode an encoded image (PNG, JPEG, ...) into raw RGB samples.

    Alpha channels and palettes are flattened by converting to ``RGB``.
    Images beyond Pillow's decompression bomb limit are rejected.

    Arguments:
        data: The encoded image.

    Returns:
        A ``(pixels, width, height)`` tuple of interleaved 8-bit RGB samples.

    Raises:
        EncodingError: If the image cannot be decoded.

    """
    try:
        with PILImage.open(BytesIO(data)) as img:
            rgb_img = img.convert("RGB")
            width, height = rgb_img.size
            pixels = rgb_img.tobytes()
    except (
        UnidentifiedImageError,
        PILImage.DecompressionBombError,
        OSError,
        ValueError,
    ) as e:
        msg = f"Unable to decode image payload: {e}"
        raise EncodingError(msg) from e

    LOGGER.debug("Decoded image payload to %sx%s RGB", width, height)
    return pixels, width, height
