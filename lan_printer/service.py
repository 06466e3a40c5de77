"""
Printer Service.

The entry point used by the rest of the application: it owns the HTTP
session, the printer registry, discovery and the job dispatcher.
"""

from __future__ import annotations

from collections.abc import Callable
from types import TracebackType
from typing import Any

import aiohttp

from lan_printer.config import ServiceConfig
from lan_printer.const import LOGGER
from lan_printer.discovery.manager import DiscoveryManager
from lan_printer.discovery.prober import CapabilityProber
from lan_printer.discovery.registry import PrinterListener, PrinterRegistry
from lan_printer.dispatch.dispatcher import JobDispatcher
from lan_printer.dispatch.protocol import ProtocolTransport
from lan_printer.dispatch.spooler import SpoolerTransport
from lan_printer.exceptions import SubmissionError
from lan_printer.ipp.client import IppClient
from lan_printer.models import Printer, PrintJobOptions, PrintJobResult


class PrinterService:
    """
    Discover LAN printers and submit print jobs to them.

    Usage::

        async with PrinterService(ServiceConfig(discovery_enabled=True)) as service:
            printers = service.get_online_printers()

    """

    def __init__(
        self,
        config: ServiceConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        spooler: SpoolerTransport | None = None,
        logger: Any = LOGGER,
    ) -> None:
        """
        Initialize a PrinterService.

        Arguments:
            config: Service configuration; read from the environment when None.
            session: An aiohttp session to reuse; one is created and owned
                by the service otherwise.
            spooler: Override for the local spooler transport.
            logger: The logger to use.

        """
        self.config = config or ServiceConfig.from_env()
        self.logger = logger
        self.registry = PrinterRegistry(logger=logger)
        self._spooler = spooler or SpoolerTransport(
            self.config.spool_dir,
            timeout=self.config.spooler_timeout,
            logger=logger,
        )
        self._session = session
        self._owns_session = session is None
        self._manager: DiscoveryManager | None = None
        self._dispatcher: JobDispatcher | None = None

    def is_enabled(self) -> bool:
        """Return True if printer discovery is enabled."""
        return self.config.discovery_enabled

    @property
    def is_started(self) -> bool:
        """Return True between start() and stop()."""
        return self._dispatcher is not None

    async def start(self) -> None:
        """Create the HTTP session and start discovery."""
        if self.is_started:
            return
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True

        client = IppClient(self._session, logger=self.logger)
        prober = CapabilityProber(
            client,
            user_name=self.config.user_name,
            timeout=self.config.probe_timeout,
            logger=self.logger,
        )
        protocol = ProtocolTransport(
            client,
            user_name=self.config.user_name,
            timeout=self.config.submit_timeout,
            logger=self.logger,
        )
        self._manager = DiscoveryManager(
            self.registry,
            prober,
            self._spooler,
            config=self.config,
            logger=self.logger,
        )
        self._dispatcher = JobDispatcher(
            self.registry,
            protocol,
            self._spooler,
            max_payload_bytes=self.config.max_payload_bytes,
            logger=self.logger,
        )
        self.logger.info(
            "Printer service starting (discovery %s, spooler %s)",
            "enabled" if self.is_enabled() else "disabled",
            "available" if self._spooler.available else "unavailable",
        )
        await self._manager.start()

    async def stop(self) -> None:
        """Stop discovery, drop listeners and close the owned HTTP session."""
        if self._manager is not None:
            await self._manager.stop()
            self._manager = None
        self._dispatcher = None
        await self.registry.aclose()
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> PrinterService:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()

    def get_printers(self) -> list[Printer]:
        """Return every known printer, online or not."""
        return self.registry.get_all_printers()

    def get_online_printers(self) -> list[Printer]:
        """Return the printers currently online."""
        return self.registry.get_online_printers()

    def get_printer(self, printer_id: str) -> Printer | None:
        """Return a printer by id."""
        return self.registry.get_printer(printer_id)

    def subscribe(self, listener: PrinterListener) -> Callable[[], None]:
        """Subscribe to ``added`` and ``updated`` printer events."""
        return self.registry.subscribe(listener)

    async def submit_print_job(
        self,
        printer_id: str,
        payload: bytes,
        file_name: str,
        options: PrintJobOptions | None = None,
    ) -> PrintJobResult:
        """
        Submit a print job.

        Raises:
            SubmissionError: If the service is not started, or any of the
                dispatcher's submission errors.
            EncodingError: If an image payload cannot be converted.

        """
        if self._dispatcher is None:
            msg = "Printer service is not started"
            raise SubmissionError(msg)
        return await self._dispatcher.submit(printer_id, payload, file_name, options)
