"""
PWG Raster encoder.

Produces a single page PWG Raster stream (PWG 5102.4) from an interleaved
RGB pixel buffer. The layout is:

* the ``RaS2`` synchronization word,
* a 1792 byte page header of big-endian 32-bit fields,
* one record per scanline: a line repeat byte followed by the row's pixels.

Rows are never compressed; every record carries a repeat byte of 1.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from lan_printer.const import POINTS_PER_INCH, RASTER_DEFAULT_RESOLUTION
from lan_printer.exceptions import EncodingError

SYNC_WORD = b"RaS2"
HEADER_SIZE = 1792
PWG_IDENTIFIER = b"PwgRaster"
CHANNELS = 3
BITS_PER_COLOR = 8
BITS_PER_PIXEL = BITS_PER_COLOR * CHANNELS
COLOR_ORDER_CHUNKY = 0
COLOR_SPACE_SRGB = 19
LINE_REPEAT = 1

# Field offsets inside the page header
OFFSET_HW_RESOLUTION = 276
OFFSET_NUM_COPIES = 340
OFFSET_PAGE_SIZE = 352
OFFSET_WIDTH = 372
OFFSET_HEIGHT = 376
OFFSET_BITS_PER_COLOR = 384
OFFSET_BITS_PER_PIXEL = 388
OFFSET_BYTES_PER_LINE = 392
OFFSET_COLOR_ORDER = 396
OFFSET_COLOR_SPACE = 400
OFFSET_NUM_COLORS = 420
OFFSET_TOTAL_PAGE_COUNT = 452
OFFSET_CROSS_FEED_TRANSFORM = 456
OFFSET_FEED_TRANSFORM = 460
OFFSET_IMAGE_BOX = 464


@dataclass(frozen=True)
class RasterOptions:
    """Page options written into the raster header."""

    copies: int = 1
    resolution_x: int = RASTER_DEFAULT_RESOLUTION
    resolution_y: int = RASTER_DEFAULT_RESOLUTION


def _points(pixels: int, resolution: int) -> int:
    # Half-up rounding, independent of float banker's rounding.
    return (pixels * POINTS_PER_INCH * 2 + resolution) // (resolution * 2)


def build_page_header(width: int, height: int, options: RasterOptions) -> bytes:
    """
    Build the 1792 byte page header for an RGB page.

    Arguments:
        width: Page width in pixels.
        height: Page height in pixels.
        options: Copies and resolution.

    Returns:
        The header bytes, with all unspecified fields zero-filled.

    """
    header = bytearray(HEADER_SIZE)
    header[: len(PWG_IDENTIFIER)] = PWG_IDENTIFIER

    def put(offset: int, *values: int) -> None:
        struct.pack_into(f">{len(values)}I", header, offset, *values)

    put(OFFSET_HW_RESOLUTION, options.resolution_x, options.resolution_y)
    put(OFFSET_NUM_COPIES, options.copies)
    put(
        OFFSET_PAGE_SIZE,
        _points(width, options.resolution_x),
        _points(height, options.resolution_y),
    )
    put(OFFSET_WIDTH, width)
    put(OFFSET_HEIGHT, height)
    put(OFFSET_BITS_PER_COLOR, BITS_PER_COLOR)
    put(OFFSET_BITS_PER_PIXEL, BITS_PER_PIXEL)
    put(OFFSET_BYTES_PER_LINE, width * CHANNELS)
    put(OFFSET_COLOR_ORDER, COLOR_ORDER_CHUNKY)
    put(OFFSET_COLOR_SPACE, COLOR_SPACE_SRGB)
    put(OFFSET_NUM_COLORS, CHANNELS)
    put(OFFSET_TOTAL_PAGE_COUNT, 1)
    put(OFFSET_CROSS_FEED_TRANSFORM, 1)
    put(OFFSET_FEED_TRANSFORM, 1)
    put(OFFSET_IMAGE_BOX, 0, 0, width, height)
    return bytes(header)


def _validate(
    pixels: bytes, width: int, height: int, options: RasterOptions
) -> None:
    if width <= 0 or height <= 0:
        msg = f"Invalid page dimensions {width}x{height}"
        raise EncodingError(msg)
    expected = width * height * CHANNELS
    if len(pixels) != expected:
        msg = (
            f"Pixel buffer has {len(pixels)} bytes, expected {expected} "
            f"for {width}x{height} RGB"
        )
        raise EncodingError(msg)
    if options.copies < 1:
        msg = f"Invalid copy count {options.copies}"
        raise EncodingError(msg)
    if options.resolution_x <= 0 or options.resolution_y <= 0:
        msg = (
            f"Invalid resolution {options.resolution_x}x{options.resolution_y}"
        )
        raise EncodingError(msg)


def encode_raster(
    pixels: bytes,
    width: int,
    height: int,
    options: RasterOptions | None = None,
) -> bytes:
    """
    Encode an RGB pixel buffer as a single page PWG Raster stream.

    Arguments:
        pixels: Interleaved 8-bit RGB samples, row by row, without alpha.
        width: Width in pixels.
        height: Height in pixels.
        options: Copies and resolution; defaults to 1 copy at 300x300 dpi.

    Returns:
        ``4 + 1792 + height * (1 + 3 * width)`` bytes.

    Raises:
        EncodingError: If the buffer length does not match the dimensions or
            the options are out of range.

    """
    options = options or RasterOptions()
    pixels = bytes(pixels)
    _validate(pixels, width, height, options)

    bytes_per_line = width * CHANNELS
    lines = bytearray()
    repeat = bytes((LINE_REPEAT,))
    for row in range(height):
        start = row * bytes_per_line
        lines += repeat
        lines += pixels[start : start + bytes_per_line]

    return SYNC_WORD + build_page_header(width, height, options) + bytes(lines)
