"""Print job dispatcher."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from lan_printer.const import (
    LOGGER,
    MAX_PAYLOAD_BYTES,
    PWG_RASTER_MIME_TYPE,
    ROUTE_IPP,
    ROUTE_IPP_RASTER,
    ROUTE_SPOOLER,
)
from lan_printer.exceptions import (
    PayloadTooLargeError,
    PrinterNotFoundError,
    PrinterOfflineError,
    TransportError,
)
from lan_printer.models import PrintJobOptions, PrintJobResult
from lan_printer.raster.encoder import RasterOptions, encode_raster
from lan_printer.raster.image import decode_to_rgb

if TYPE_CHECKING:
    from lan_printer.discovery.registry import PrinterRegistry

    from .protocol import ProtocolTransport
    from .spooler import SpoolerTransport


def needs_raster_conversion(mime_type: str) -> bool:
    """Return True for image payloads that are not already PWG Raster."""
    mime_type = mime_type.lower()
    return mime_type.startswith("image/") and mime_type != PWG_RASTER_MIME_TYPE


def select_route(mime_type: str, *, spooler_available: bool) -> str:
    """
    Pick the transport for a payload.

    Rules, in order:

    1. a local spooler is available: ``spooler``, whatever the mime type;
    2. an image that is not PWG Raster: ``ipp-raster`` (convert, then IPP);
    3. anything else: ``ipp`` with the payload unmodified.

    Example:
        >>> select_route("image/png", spooler_available=False)
        'ipp-raster'
        >>> select_route("image/png", spooler_available=True)
        'spooler'

    """
    if spooler_available:
        return ROUTE_SPOOLER
    if needs_raster_conversion(mime_type):
        return ROUTE_IPP_RASTER
    return ROUTE_IPP


class JobDispatcher:
    """Route print submissions to the spooler or directly to the printer."""

    def __init__(
        self,
        registry: PrinterRegistry,
        protocol: ProtocolTransport,
        spooler: SpoolerTransport,
        *,
        max_payload_bytes: int = MAX_PAYLOAD_BYTES,
        image_decoder: Callable[[bytes], tuple[bytes, int, int]] = decode_to_rgb,
        raster_encoder: Callable[..., bytes] = encode_raster,
        logger: Any = LOGGER,
    ) -> None:
        """
        Initialize a JobDispatcher.

        Arguments:
            registry: Source of printer entries.
            protocol: The IPP transport.
            spooler: The local spooler transport.
            max_payload_bytes: Largest accepted payload.
            image_decoder: Turns an encoded image into RGB samples.
            raster_encoder: Turns RGB samples into PWG Raster.
            logger: The logger to use.

        """
        self._registry = registry
        self._protocol = protocol
        self._spooler = spooler
        self._max_payload_bytes = max_payload_bytes
        self._image_decoder = image_decoder
        self._raster_encoder = raster_encoder
        self.logger = logger

    async def submit(
        self,
        printer_id: str,
        payload: bytes,
        file_name: str,
        options: PrintJobOptions | None = None,
    ) -> PrintJobResult:
        """
        Submit a print job to a registered printer.

        Arguments:
            printer_id: The registry id of the target printer.
            payload: The document bytes.
            file_name: Display name, used as the job name.
            options: Job options; defaults to a single PDF copy.

        Returns:
            The normalized job result.

        Raises:
            PrinterNotFoundError: If the id is not registered.
            PrinterOfflineError: If the printer is marked offline.
            PayloadTooLargeError: If the payload exceeds the size limit.
            EncodingError: If an image payload cannot be converted.
            TransportError: If the IPP submission fails.
            SpoolerError: If the local spooler fails.

        """
        printer = self._registry.get_printer(printer_id)
        if printer is None:
            msg = f"Printer not found: {printer_id}"
            raise PrinterNotFoundError(msg)
        if not printer.online:
            msg = f"Printer is offline: {printer.name}"
            raise PrinterOfflineError(msg)
        if len(payload) > self._max_payload_bytes:
            msg = (
                f"Payload of {len(payload)} bytes exceeds the limit of "
                f"{self._max_payload_bytes} bytes"
            )
            raise PayloadTooLargeError(msg)

        options = options or PrintJobOptions()
        route = select_route(options.mime_type, spooler_available=self._spooler.available)
        self.logger.info(
            "Print job: %s (%s) -> %s via %s",
            file_name,
            options.mime_type,
            printer.name,
            route,
        )

        try:
            if route == ROUTE_SPOOLER:
                return await self._spooler.submit(printer, payload, file_name, options)
            if route == ROUTE_IPP_RASTER:
                raster = await asyncio.to_thread(self._to_raster, payload)
                return await self._protocol.submit(
                    printer,
                    raster,
                    file_name,
                    options,
                    document_format=PWG_RASTER_MIME_TYPE,
                    route=ROUTE_IPP_RASTER,
                )
            return await self._protocol.submit(printer, payload, file_name, options)
        except OSError as e:
            msg = f"Print job to {printer.name} failed: {e}"
            raise TransportError(msg) from e

    def _to_raster(self, payload: bytes) -> bytes:
        pixels, width, height = self._image_decoder(payload)
        # Copies travel as the IPP "copies" attribute, not in the raster header.
        return self._raster_encoder(pixels, width, height, RasterOptions())
