"""IPP over HTTP client."""

from __future__ import annotations

import asyncio
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import aiohttp

from lan_printer.const import IPP_CONTENT_TYPE, LOGGER, PROBE_TIMEOUT_SECONDS

from .codec import IppRequest, IppResponse, encode_request, parse_response
from .exceptions import (
    IppConnectionError,
    IppRetryConnectionError,
    IppStatusError,
)

HTTP_OK = 200
HTTP_CLIENT_ERRORS = range(400, 500)
_SCHEME_MAP = {"ipp": "http", "ipps": "https", "http": "http", "https": "https"}


def ipp_uri_to_url(uri: str) -> str:
    """
    Translate an ``ipp://`` or ``ipps://`` URI into the HTTP URL to post to.

    Arguments:
        uri: The printer URI.

    Returns:
        The equivalent ``http://`` or ``https://`` URL.

    """
    parts = urlsplit(uri)
    scheme = _SCHEME_MAP.get(parts.scheme.lower())
    if scheme is None:
        msg = f"Unsupported printer URI scheme: {uri}"
        raise IppConnectionError(msg)
    return urlunsplit((scheme, parts.netloc, parts.path or "/", parts.query, ""))


def _should_retry(status: int) -> bool:
    return status != HTTP_OK and status not in HTTP_CLIENT_ERRORS


class IppClient:
    """Client for sending IPP operations to network printers."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        verify_ssl: bool = False,
        retries: int = 1,
        logger: Any = LOGGER,
    ) -> None:
        """
        Initialize an IppClient.

        Arguments:
            session: The aiohttp client session used for every request.
            verify_ssl: Whether to verify TLS certificates on ipps URIs.
            retries: How many times a request answered with an unexpected
                HTTP status is sent again. Client error statuses (4xx) mean
                the printer rejected the request and are never retried.
            logger: The logger to use.

        """
        self._session = session
        self._verify_ssl = verify_ssl
        self._retries = retries
        self.logger = logger

    async def execute(
        self,
        uri: str,
        request: IppRequest,
        *,
        timeout: float = PROBE_TIMEOUT_SECONDS,
    ) -> IppResponse:
        """
        Send a request and decode the response.

        Arguments:
            uri: The printer URI.
            request: The request to send.
            timeout: Total seconds allowed per HTTP attempt.

        Returns:
            The decoded response.

        Raises:
            IppConnectionError: If the printer cannot be reached.
            IppRetryConnectionError: If a retry after an unexpected HTTP
                status hit a broken connection.
            IppStatusError: For HTTP errors or IPP error status codes.
            IppParseError: If the response body cannot be decoded.

        """
        url = ipp_uri_to_url(uri)
        body = encode_request(request)
        self.logger.debug(
            "IPP >> %s operation=0x%04x request_id=%s (%d bytes)",
            url,
            request.operation,
            request.request_id,
            len(body),
        )

        status, payload = await self._post(url, body, timeout)
        attempts = 0
        first_status = status
        while _should_retry(status) and attempts < self._retries:
            attempts += 1
            self.logger.debug(
                "Unexpected HTTP status %s from %s, retrying (%d/%d)",
                status,
                url,
                attempts,
                self._retries,
            )
            try:
                status, payload = await self._post(url, body, timeout)
            except IppConnectionError as e:
                msg = (
                    f"Retry after HTTP {first_status} from {url} hit a broken "
                    f"connection: {e}"
                )
                raise IppRetryConnectionError(msg, first_status=first_status) from e

        if status != HTTP_OK:
            msg = f"HTTP {status} from {url}"
            raise IppStatusError(msg, status=status)

        response = parse_response(payload)
        self.logger.debug(
            "IPP << %s status=0x%04x request_id=%s",
            url,
            response.status_code,
            response.request_id,
        )
        if response.is_error:
            msg = f"IPP status 0x{response.status_code:04x} from {url}"
            raise IppStatusError(msg, status=response.status_code)
        return response

    async def _post(self, url: str, body: bytes, timeout: float) -> tuple[int, bytes]:
        try:
            async with self._session.post(
                url,
                data=body,
                headers={"Content-Type": IPP_CONTENT_TYPE},
                timeout=aiohttp.ClientTimeout(total=timeout),
                ssl=self._verify_ssl,
            ) as response:
                return response.status, await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            msg = f"Failed to reach {url}: {e!r}"
            raise IppConnectionError(msg) from e
