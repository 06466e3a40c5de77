"""IPP Print-Job transport."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from lan_printer.const import (
    DEFAULT_USER_NAME,
    IPP_CHARSET,
    IPP_NATURAL_LANGUAGE,
    LOGGER,
    ROUTE_IPP,
    SUBMIT_TIMEOUT_SECONDS,
)
from lan_printer.exceptions import TransportError
from lan_printer.ipp.codec import IppAttribute, IppOperation, IppRequest, IppTag
from lan_printer.ipp.exceptions import IppError
from lan_printer.models import (
    JOB_STATE_UNKNOWN,
    Printer,
    PrintJobOptions,
    PrintJobResult,
    job_state_name,
)
from lan_printer.quirks import OPERATION_SUBMIT, match_quirk

if TYPE_CHECKING:
    from lan_printer.ipp.client import IppClient


class ProtocolTransport:
    """Submit jobs directly to the printer over IPP."""

    def __init__(
        self,
        client: IppClient,
        *,
        user_name: str = DEFAULT_USER_NAME,
        timeout: float = SUBMIT_TIMEOUT_SECONDS,
        logger: Any = LOGGER,
    ) -> None:
        """Initialize the transport with the IPP client it submits through."""
        self._client = client
        self._user_name = user_name
        self._timeout = timeout
        self.logger = logger

    def build_request(
        self,
        printer: Printer,
        payload: bytes,
        file_name: str,
        document_format: str,
        options: PrintJobOptions,
    ) -> IppRequest:
        """
        Build the Print-Job request.

        Optional job attributes are only included when the caller supplied
        them; a single copy is the printer default and is not sent.
        """
        request = IppRequest(operation=IppOperation.PRINT_JOB, data=payload)
        request.add_group(
            IppTag.OPERATION,
            [
                IppAttribute("attributes-charset", IppTag.CHARSET, [IPP_CHARSET]),
                IppAttribute(
                    "attributes-natural-language",
                    IppTag.NATURAL_LANGUAGE,
                    [IPP_NATURAL_LANGUAGE],
                ),
                IppAttribute("printer-uri", IppTag.URI, [printer.submission_uri]),
                IppAttribute(
                    "requesting-user-name",
                    IppTag.NAME,
                    [options.user_name or self._user_name],
                ),
                IppAttribute("job-name", IppTag.NAME, [file_name]),
                IppAttribute("document-format", IppTag.MIME_TYPE, [document_format]),
            ],
        )

        job_attributes = []
        if options.copies > 1:
            job_attributes.append(
                IppAttribute("copies", IppTag.INTEGER, [options.copies])
            )
        if options.sides:
            job_attributes.append(IppAttribute("sides", IppTag.KEYWORD, [options.sides]))
        if options.color_mode:
            job_attributes.append(
                IppAttribute("print-color-mode", IppTag.KEYWORD, [options.color_mode])
            )
        request.add_group(IppTag.JOB, job_attributes)
        return request

    async def submit(
        self,
        printer: Printer,
        payload: bytes,
        file_name: str,
        options: PrintJobOptions,
        *,
        document_format: str | None = None,
        route: str = ROUTE_IPP,
    ) -> PrintJobResult:
        """
        Send a Print-Job request and normalize the response.

        Arguments:
            printer: The target registry entry.
            payload: The document bytes.
            file_name: Used as the job name.
            options: Caller supplied job options.
            document_format: Overrides the declared mime type, e.g. after a
                raster conversion.
            route: The route name reported in the result.

        Returns:
            The job result; known device anomalies yield unknown id and state.

        Raises:
            TransportError: For every failure that is not a known quirk.

        """
        uri = printer.submission_uri
        request = self.build_request(
            printer, payload, file_name, document_format or options.mime_type, options
        )
        self.logger.info(
            "Submitting %s (%d bytes) to %s", file_name, len(payload), uri
        )
        try:
            response = await self._client.execute(uri, request, timeout=self._timeout)
        except IppError as e:
            quirk = match_quirk(e, OPERATION_SUBMIT)
            if quirk is None:
                msg = f"Print job to {printer.name} failed: {e}"
                raise TransportError(msg) from e
            self.logger.info(
                "Print job to %s normalized by quirk %s: %s",
                printer.name,
                quirk.name,
                e,
            )
            return PrintJobResult(
                printer_id=printer.id,
                printer_name=printer.name,
                job_state=JOB_STATE_UNKNOWN,
                route=route,
            )

        job_id = response.first(IppTag.JOB, "job-id")
        job_state = response.first(IppTag.JOB, "job-state")
        return PrintJobResult(
            printer_id=printer.id,
            printer_name=printer.name,
            job_id=job_id,
            job_state=job_state_name(job_state),
            route=route,
        )
