"""Tests for the PWG Raster encoder."""

import struct

import pytest

from lan_printer.exceptions import EncodingError
from lan_printer.raster.encoder import (
    HEADER_SIZE,
    OFFSET_BYTES_PER_LINE,
    OFFSET_COLOR_SPACE,
    OFFSET_HEIGHT,
    OFFSET_HW_RESOLUTION,
    OFFSET_NUM_COPIES,
    OFFSET_PAGE_SIZE,
    OFFSET_WIDTH,
    RasterOptions,
    build_page_header,
    encode_raster,
)

WHITE_2X2 = b"\xff" * 12


def _field(stream: bytes, offset: int) -> int:
    """Read a header field from a full raster stream."""
    return struct.unpack_from(">I", stream, 4 + offset)[0]


class TestEncodeRaster:
    """Test cases for encode_raster."""

    def test_white_2x2_length(self) -> None:
        """Test the total length of a 2x2 page."""
        assert len(encode_raster(WHITE_2X2, 2, 2)) == 1810

    def test_sync_word_and_identifier(self) -> None:
        """Test the stream and header start markers."""
        stream = encode_raster(WHITE_2X2, 2, 2)

        assert stream[:4] == b"RaS2"
        assert stream[4:13] == b"PwgRaster"

    def test_header_dimensions(self) -> None:
        """Test width, height and bytes per line."""
        stream = encode_raster(WHITE_2X2, 2, 2)

        assert _field(stream, OFFSET_WIDTH) == 2
        assert _field(stream, OFFSET_HEIGHT) == 2
        assert _field(stream, OFFSET_BYTES_PER_LINE) == 6
        assert _field(stream, OFFSET_COLOR_SPACE) == 19

    def test_scanline_records(self) -> None:
        """Test that each row is a repeat byte of 1 followed by its pixels."""
        pixels = bytes(range(12))
        stream = encode_raster(pixels, 2, 2)
        body = stream[4 + HEADER_SIZE :]

        assert body == b"\x01" + pixels[:6] + b"\x01" + pixels[6:]

    def test_deterministic(self) -> None:
        """Test that identical input gives identical output."""
        pixels = bytes(range(3 * 5 * 4))
        assert encode_raster(pixels, 5, 4) == encode_raster(pixels, 5, 4)

    def test_accepts_bytearray(self) -> None:
        """Test that a mutable buffer is accepted."""
        assert encode_raster(bytearray(WHITE_2X2), 2, 2) == encode_raster(
            WHITE_2X2, 2, 2
        )

    @pytest.mark.parametrize(
        ("pixels", "width", "height", "options"),
        [
            (WHITE_2X2, 0, 2, None),
            (WHITE_2X2, 2, -1, None),
            (WHITE_2X2[:-1], 2, 2, None),
            (b"\xff" * 16, 2, 2, None),
            (WHITE_2X2, 2, 2, RasterOptions(copies=0)),
            (WHITE_2X2, 2, 2, RasterOptions(resolution_x=0)),
        ],
        ids=[
            "zero-width",
            "negative-height",
            "short-buffer",
            "rgba-sized-buffer",
            "zero-copies",
            "zero-resolution",
        ],
    )
    def test_invalid_input(
        self,
        pixels: bytes,
        width: int,
        height: int,
        options: RasterOptions | None,
    ) -> None:
        """Test that structurally invalid input raises EncodingError."""
        with pytest.raises(EncodingError):
            encode_raster(pixels, width, height, options)


class TestBuildPageHeader:
    """Test cases for build_page_header."""

    def test_size(self) -> None:
        """Test the fixed header size."""
        assert len(build_page_header(10, 10, RasterOptions())) == HEADER_SIZE

    def test_resolution_copies_and_page_size(self) -> None:
        """Test resolution, copies and the page size in points."""
        header = build_page_header(
            2550, 3300, RasterOptions(copies=2, resolution_x=300, resolution_y=300)
        )

        assert struct.unpack_from(">2I", header, OFFSET_HW_RESOLUTION) == (300, 300)
        assert struct.unpack_from(">I", header, OFFSET_NUM_COPIES)[0] == 2
        # US Letter at 300 dpi is 612x792 points.
        assert struct.unpack_from(">2I", header, OFFSET_PAGE_SIZE) == (612, 792)
