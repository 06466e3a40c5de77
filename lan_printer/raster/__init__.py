"""
PWG Raster support.

This package converts image payloads into PWG Raster, the fallback document
format accepted by IPP Everywhere printers.
"""

from .encoder import RasterOptions, build_page_header, encode_raster
from .image import decode_to_rgb

__all__ = [
    "RasterOptions",
    "build_page_header",
    "decode_to_rgb",
    "encode_raster",
]
