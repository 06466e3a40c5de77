"""
Discovery Manager for network printers.

Browses the IPP and IPPS DNS-SD feeds, keeps the printer registry current
and runs the periodic liveness sweep.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from zeroconf import ServiceStateChange
from zeroconf.asyncio import AsyncServiceBrowser, AsyncServiceInfo, AsyncZeroconf

from lan_printer.config import ServiceConfig
from lan_printer.const import (
    DISCOVERY_SERVICE_TYPES,
    EVENT_ADDED,
    EVENT_UPDATED,
    LOGGER,
    SERVICE_INFO_TIMEOUT_MS,
    SERVICE_TYPE_IPPS,
)
from lan_printer.exceptions import DiscoveryError, ProbeError
from lan_printer.models import (
    Printer,
    PrinterStatus,
    ServiceAnnouncement,
    build_printer_uri,
    printer_id_for,
)

from .matcher import match_queue

if TYPE_CHECKING:
    from zeroconf import Zeroconf

    from lan_printer.dispatch.spooler import SpoolerTransport

    from .prober import CapabilityProber, ProbeResult
    from .registry import PrinterRegistry


def normalize_txt(properties: Mapping[Any, Any] | None) -> dict[str, str]:
    """Decode a raw TXT record into a ``str`` to ``str`` mapping."""
    txt: dict[str, str] = {}
    for key, value in (properties or {}).items():
        if isinstance(key, bytes):
            key = key.decode("utf-8", errors="replace")
        if value is None:
            value = ""
        elif isinstance(value, bytes):
            value = value.decode("utf-8", errors="replace")
        txt[str(key)] = str(value)
    return txt


def instance_name(name: str, service_type: str) -> str:
    """
    Strip the service type from a DNS-SD instance name.

    Example:
        >>> instance_name("Office._ipp._tcp.local.", "_ipp._tcp.local.")
        'Office'

    """
    suffix = f".{service_type}"
    if name.endswith(suffix):
        return name[: -len(suffix)]
    return name


def announcement_from_info(
    info: AsyncServiceInfo, service_type: str, name: str
) -> ServiceAnnouncement:
    """Convert a resolved zeroconf record into a ServiceAnnouncement."""
    server = (info.server or "").rstrip(".")
    return ServiceAnnouncement(
        name=instance_name(name, service_type),
        service_type=service_type,
        host=server or None,
        addresses=tuple(info.parsed_addresses()),
        port=info.port,
        txt=normalize_txt(info.properties),
    )


class DiscoveryManager:
    """
    Keeps the printer registry in sync with the network.

    Every change to an entry's liveness state happens under that entry's
    lock. A probe result is only applied when the entry has not been marked
    offline since the probe started.
    """

    def __init__(
        self,
        registry: PrinterRegistry,
        prober: CapabilityProber,
        spooler: SpoolerTransport,
        *,
        config: ServiceConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
        logger: Any = LOGGER,
    ) -> None:
        """
        Initialize a DiscoveryManager.

        Arguments:
            registry: The registry to populate.
            prober: Used for capability probes.
            spooler: Provides the local queue list for matching.
            config: Service configuration; defaults are used when None.
            clock: Monotonic time source.
            logger: The logger to use.

        """
        self._registry = registry
        self._prober = prober
        self._spooler = spooler
        self._config = config or ServiceConfig()
        self._clock = clock
        self.logger = logger
        self._background_tasks: set[asyncio.Task] = set()
        self._sweep_task: asyncio.Task | None = None
        self._aiozc: AsyncZeroconf | None = None
        self._browsers: list[AsyncServiceBrowser] = []

    @property
    def is_running(self) -> bool:
        """Return True while the discovery feeds are being browsed."""
        return self._aiozc is not None

    async def start(self) -> None:
        """Open the discovery feeds and start the sweep loop."""
        if not self._config.discovery_enabled:
            self.logger.info("Printer discovery is disabled")
            return
        if self.is_running:
            return

        self.logger.info("Starting printer discovery for %s", DISCOVERY_SERVICE_TYPES)
        self._aiozc = AsyncZeroconf()
        self._browsers = [
            AsyncServiceBrowser(
                self._aiozc.zeroconf,
                service_type,
                handlers=[self._on_service_state_change],
            )
            for service_type in DISCOVERY_SERVICE_TYPES
        ]
        self._sweep_task = asyncio.create_task(self._sweep_loop())

    async def stop(self) -> None:
        """Stop browsing, the sweep loop and any probe still in flight."""
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            await asyncio.gather(self._sweep_task, return_exceptions=True)
            self._sweep_task = None

        tasks = list(self._background_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._background_tasks.clear()

        for browser in self._browsers:
            await browser.async_cancel()
        self._browsers = []
        if self._aiozc is not None:
            await self._aiozc.async_close()
            self._aiozc = None
            self.logger.info("Printer discovery stopped")

    def _on_service_state_change(
        self,
        zeroconf: Zeroconf,
        service_type: str,
        name: str,
        state_change: ServiceStateChange,
    ) -> None:
        if state_change not in (ServiceStateChange.Added, ServiceStateChange.Updated):
            return
        self._track(asyncio.ensure_future(self._resolve(zeroconf, service_type, name)))

    async def _resolve(self, zeroconf: Zeroconf, service_type: str, name: str) -> None:
        info = AsyncServiceInfo(service_type, name)
        if not await info.async_request(zeroconf, SERVICE_INFO_TIMEOUT_MS):
            self.logger.debug("No service info for %s", name)
            return
        await self.handle_announcement(announcement_from_info(info, service_type, name))

    def _track(self, task: asyncio.Task) -> None:
        self._background_tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._background_tasks.discard(task)
        if task.cancelled():
            return
        if (error := task.exception()) is not None:
            self.logger.error("Discovery task failed: %r", error)

    async def handle_announcement(
        self, announcement: ServiceAnnouncement
    ) -> Printer | None:
        """
        Register or refresh the printer behind an announcement.

        Malformed announcements are logged and dropped.

        Returns:
            The registry entry, or None if the announcement was rejected.

        """
        try:
            return await self._register(announcement)
        except DiscoveryError as e:
            self.logger.warning("Ignoring printer announcement: %s", e)
            return None

    async def _register(self, announcement: ServiceAnnouncement) -> Printer:
        host = announcement.effective_host
        if not host:
            msg = f"{announcement.name!r} has no host or address"
            raise DiscoveryError(msg)
        printer_id = printer_id_for(
            announcement.name, host, announcement.effective_port
        )

        existing = self._registry.get_printer(printer_id)
        if existing is not None:
            await self._refresh(existing, announcement)
            return existing

        try:
            candidate = Printer.from_announcement(announcement, now=self._clock())
        except ValueError as e:
            raise DiscoveryError(str(e)) from e

        printer = self._registry.add_printer(candidate)
        if printer is not candidate:
            await self._refresh(printer, announcement)
            return printer

        self.logger.info("Discovered printer %s at %s", printer.name, printer.uri)
        queues = await self._spooler.list_queues()
        printer.matched_queue_name = match_queue(printer.name, queues)
        if printer.matched_queue_name:
            self.logger.debug(
                "Matched %s to spooler queue %s",
                printer.name,
                printer.matched_queue_name,
            )
        self._track(asyncio.ensure_future(self._probe_new(printer)))
        return printer

    async def _refresh(
        self, printer: Printer, announcement: ServiceAnnouncement
    ) -> None:
        came_back = False
        async with printer.lock:
            printer.last_seen = self._clock()
            if announcement.service_type == SERVICE_TYPE_IPPS and not printer.secure_uri:
                printer.secure_uri = build_printer_uri(
                    SERVICE_TYPE_IPPS,
                    printer.host,
                    announcement.effective_port,
                    announcement.txt,
                )
            if not printer.online:
                printer.online = True
                printer.status = PrinterStatus.IDLE
                came_back = True
        if came_back:
            self.logger.info("Printer %s is back online", printer.name)
            self._registry.emit(EVENT_UPDATED, printer)

    async def _probe_new(self, printer: Printer) -> None:
        generation = printer.offline_generation
        try:
            result = await self._prober.probe(printer.uri)
        except ProbeError as e:
            self.logger.info("Initial probe of %s failed: %s", printer.name, e)
        else:
            await self._apply_probe(printer, result, generation)
        self._registry.emit(EVENT_ADDED, printer)

    async def _apply_probe(
        self, printer: Printer, result: ProbeResult, generation: int
    ) -> bool:
        async with printer.lock:
            if printer.offline_generation != generation or not printer.online:
                self.logger.debug("Discarding stale probe of %s", printer.name)
                return False
            printer.last_seen = self._clock()
            if result.capabilities is not None:
                printer.capabilities = result.capabilities
            if result.status is not None:
                printer.status = result.status
        return True

    async def _reprobe(self, printer: Printer) -> None:
        generation = printer.offline_generation
        try:
            result = await self._prober.probe(printer.uri)
        except ProbeError as e:
            self.logger.warning("Probe of %s failed: %s", printer.name, e)
            return
        if await self._apply_probe(printer, result, generation):
            self._registry.emit(EVENT_UPDATED, printer)

    async def _expire(self, printer: Printer, now: float) -> bool:
        async with printer.lock:
            if not printer.online:
                return False
            if now - printer.last_seen <= self._config.liveness_window:
                return False
            printer.online = False
            printer.status = PrinterStatus.OFFLINE
            printer.offline_generation += 1
        self.logger.info("Printer %s went offline", printer.name)
        self._registry.emit(EVENT_UPDATED, printer)
        return True

    async def sweep(self) -> None:
        """
        Run one liveness pass over the registry.

        Entries not seen within the liveness window are marked offline; every
        other online entry is re-probed concurrently. Offline entries only
        come back through a new announcement.
        """
        now = self._clock()
        to_probe = []
        for printer in self._registry.get_all_printers():
            if not printer.online:
                continue
            if not await self._expire(printer, now):
                to_probe.append(printer)

        results = await asyncio.gather(
            *(self._reprobe(printer) for printer in to_probe),
            return_exceptions=True,
        )
        for printer, result in zip(to_probe, results):
            if isinstance(result, Exception):
                self.logger.error(
                    "Unexpected error probing %s: %r", printer.name, result
                )

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._config.sweep_interval)
            try:
                await self.sweep()
            except Exception:
                self.logger.exception("Printer sweep failed")
