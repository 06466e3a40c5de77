"""
Internet Printing Protocol support.

This package contains a small IPP/1.1 wire codec and an aiohttp based client
used to probe printers and submit print jobs.
"""

from .client import IppClient, ipp_uri_to_url
from .codec import (
    IppAttribute,
    IppOperation,
    IppRequest,
    IppResponse,
    IppTag,
    encode_request,
    parse_response,
)
from .exceptions import (
    IppConnectionError,
    IppError,
    IppParseError,
    IppRetryConnectionError,
    IppStatusError,
)

__all__ = [
    "IppAttribute",
    "IppClient",
    "IppConnectionError",
    "IppError",
    "IppOperation",
    "IppParseError",
    "IppRequest",
    "IppResponse",
    "IppRetryConnectionError",
    "IppStatusError",
    "IppTag",
    "encode_request",
    "ipp_uri_to_url",
    "parse_response",
]
