"""Capability probing through Get-Printer-Attributes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from lan_printer.const import (
    DEFAULT_USER_NAME,
    IPP_CHARSET,
    IPP_NATURAL_LANGUAGE,
    LOGGER,
    PROBE_REQUESTED_ATTRIBUTES,
    PROBE_TIMEOUT_SECONDS,
)
from lan_printer.exceptions import ProbeError
from lan_printer.ipp.codec import (
    IppAttribute,
    IppOperation,
    IppRequest,
    IppResponse,
    IppTag,
)
from lan_printer.ipp.exceptions import IppError
from lan_printer.models import PrinterCapabilities, PrinterStatus
from lan_printer.quirks import OPERATION_PROBE, match_quirk

if TYPE_CHECKING:
    from lan_printer.ipp.client import IppClient


@dataclass
class ProbeResult:
    """
    Outcome of a successful probe.

    ``capabilities`` and ``status`` are None when the device answered in a
    way that was normalized by a quirk; ``quirk`` then names it.
    """

    capabilities: PrinterCapabilities | None = None
    status: PrinterStatus | None = None
    quirk: str | None = None


def _as_list(values: list[Any] | None) -> list[str] | None:
    if values is None:
        return None
    return [str(value) for value in values if value is not None]


def capabilities_from_response(
    response: IppResponse,
) -> tuple[PrinterCapabilities, PrinterStatus | None]:
    """
    Map a Get-Printer-Attributes response to capabilities and status.

    Arguments:
        response: The decoded response.

    Returns:
        The capabilities and the status derived from ``printer-state``, or
        None if the state code is not recognized.

    """
    attrs = response.group(IppTag.PRINTER)
    state = response.first(IppTag.PRINTER, "printer-state")
    color = response.first(IppTag.PRINTER, "color-supported")
    capabilities = PrinterCapabilities(
        color_supported=bool(color) if color is not None else None,
        sides_supported=_as_list(attrs.get("sides-supported")),
        media_supported=_as_list(attrs.get("media-supported")),
        document_formats=_as_list(attrs.get("document-format-supported")),
        printer_state=state if isinstance(state, int) else None,
        printer_state_reasons=_as_list(attrs.get("printer-state-reasons")),
    )
    return capabilities, PrinterStatus.from_ipp_state(capabilities.printer_state)


class CapabilityProber:
    """Query a printer's state and supported options."""

    def __init__(
        self,
        client: IppClient,
        *,
        user_name: str = DEFAULT_USER_NAME,
        timeout: float = PROBE_TIMEOUT_SECONDS,
        logger: Any = LOGGER,
    ) -> None:
        """Initialize the prober with the IPP client it sends requests with."""
        self._client = client
        self._user_name = user_name
        self._timeout = timeout
        self.logger = logger

    def build_request(self, uri: str) -> IppRequest:
        """Build the Get-Printer-Attributes request for ``uri``."""
        request = IppRequest(operation=IppOperation.GET_PRINTER_ATTRIBUTES)
        request.add_group(
            IppTag.OPERATION,
            [
                IppAttribute("attributes-charset", IppTag.CHARSET, [IPP_CHARSET]),
                IppAttribute(
                    "attributes-natural-language",
                    IppTag.NATURAL_LANGUAGE,
                    [IPP_NATURAL_LANGUAGE],
                ),
                IppAttribute("printer-uri", IppTag.URI, [uri]),
                IppAttribute("requesting-user-name", IppTag.NAME, [self._user_name]),
                IppAttribute(
                    "requested-attributes",
                    IppTag.KEYWORD,
                    list(PROBE_REQUESTED_ATTRIBUTES),
                ),
            ],
        )
        return request

    async def probe(self, uri: str) -> ProbeResult:
        """
        Probe the printer at ``uri``.

        Arguments:
            uri: The printer URI.

        Returns:
            The probe result; an unparseable response yields a result with
            unknown capabilities and status.

        Raises:
            ProbeError: For every failure that is not a known quirk.

        """
        try:
            response = await self._client.execute(
                uri, self.build_request(uri), timeout=self._timeout
            )
        except IppError as e:
            quirk = match_quirk(e, OPERATION_PROBE)
            if quirk is None:
                msg = f"Probe of {uri} failed: {e}"
                raise ProbeError(msg) from e
            self.logger.debug(
                "Probe of %s normalized by quirk %s: %s", uri, quirk.name, e
            )
            return ProbeResult(quirk=quirk.name)

        capabilities, status = capabilities_from_response(response)
        self.logger.debug(
            "Probe of %s: state=%s formats=%s",
            uri,
            capabilities.printer_state,
            capabilities.document_formats,
        )
        return ProbeResult(capabilities=capabilities, status=status)
