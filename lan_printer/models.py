"""Models for discovered printers and print jobs."""

from __future__ import annotations

import asyncio
import hashlib
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from lan_printer.const import (
    DEFAULT_IPP_PORT,
    DEFAULT_MIME_TYPE,
    DEFAULT_RESOURCE_PATH,
    PRINTER_ID_LENGTH,
    ROUTE_IPP,
    SERVICE_TYPE_IPPS,
    TXT_RESOURCE_PATH,
)


class PrinterStatus(Enum):
    """
    Last known device state of a printer.

    Attributes:
        IDLE: The printer is ready for jobs.
        PRINTING: The printer is processing a job.
        STOPPED: The printer reported itself stopped.
        OFFLINE: The printer has not been seen within the liveness window.

    Example:
        >>> PrinterStatus.from_ipp_state(4)
        <PrinterStatus.PRINTING: 'printing'>
        >>> PrinterStatus.from_ipp_state(42) is None
        True

    """

    IDLE = "idle"
    PRINTING = "printing"
    STOPPED = "stopped"
    OFFLINE = "offline"

    @classmethod
    def from_ipp_state(cls, state: int | None) -> PrinterStatus | None:
        """
        Convert an IPP ``printer-state`` enum value to a PrinterStatus.

        Arguments:
            state: The ``printer-state`` value (3 idle, 4 processing, 5 stopped).

        Returns:
            The corresponding status, or None for unrecognized codes.

        """
        return _IPP_PRINTER_STATES.get(state)


_IPP_PRINTER_STATES = {
    3: PrinterStatus.IDLE,
    4: PrinterStatus.PRINTING,
    5: PrinterStatus.STOPPED,
}

JOB_STATES = {
    3: "pending",
    4: "pending-held",
    5: "processing",
    6: "processing-stopped",
    7: "canceled",
    8: "aborted",
    9: "completed",
}
JOB_STATE_UNKNOWN = "unknown"


def job_state_name(state: int | None) -> str:
    """Return the keyword for an IPP ``job-state`` value."""
    if state is None:
        return JOB_STATE_UNKNOWN
    return JOB_STATES.get(state, JOB_STATE_UNKNOWN)


def printer_id_for(name: str, host: str, port: int) -> str:
    """
    Compute the stable identity of a printer.

    Arguments:
        name: The advertised service name.
        host: The advertised host name or first address.
        port: The advertised port.

    Returns:
        The first 12 hex characters of the MD5 digest of ``name-host-port``.

    """
    data = f"{name}-{host}-{port}"
    return hashlib.md5(data.encode("utf-8")).hexdigest()[:PRINTER_ID_LENGTH]  # noqa: S324


def build_printer_uri(
    service_type: str, host: str, port: int, txt: Mapping[str, str]
) -> str:
    """Build ``protocol://host:port/resource-path`` from an announcement."""
    protocol = "ipps" if service_type == SERVICE_TYPE_IPPS else "ipp"
    resource_path = (txt.get(TXT_RESOURCE_PATH) or DEFAULT_RESOURCE_PATH).lstrip("/")
    if ":" in host and not host.startswith("["):
        # IPv6 literal; a zone id separator is percent-encoded
        host = f"[{host.replace('%', '%25')}]"
    return f"{protocol}://{host}:{port}/{resource_path}"


@dataclass(frozen=True)
class ServiceAnnouncement:
    """A single record received from a discovery feed."""

    name: str
    service_type: str
    host: str | None = None
    addresses: tuple[str, ...] = ()
    port: int | None = None
    txt: Mapping[str, str] = field(default_factory=dict)

    @property
    def effective_host(self) -> str | None:
        """Return the advertised host, falling back to the first address."""
        if self.host:
            return self.host
        if self.addresses:
            return self.addresses[0]
        return None

    @property
    def effective_port(self) -> int:
        """Return the advertised port, falling back to the IPP default."""
        return self.port or DEFAULT_IPP_PORT


@dataclass
class PrinterCapabilities:
    """Capabilities reported by a printer; every field is unknown until probed."""

    color_supported: bool | None = None
    sides_supported: list[str] | None = None
    media_supported: list[str] | None = None
    document_formats: list[str] | None = None
    printer_state: int | None = None
    printer_state_reasons: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready representation."""
        return {
            "colorSupported": self.color_supported,
            "sidesSupported": self.sides_supported,
            "mediaSupported": self.media_supported,
            "documentFormatSupported": self.document_formats,
            "printerState": self.printer_state,
            "printerStateReasons": self.printer_state_reasons,
        }


@dataclass(eq=False)
class Printer:
    """
    A registry entry for a discovered network printer.

    Identity fields never change once the entry exists. The mutable state is
    only written while holding ``lock``.
    """

    id: str
    name: str
    host: str
    port: int
    uri: str
    service_type: str
    txt: Mapping[str, str] = field(default_factory=dict)
    status: PrinterStatus = PrinterStatus.IDLE
    online: bool = True
    capabilities: PrinterCapabilities = field(default_factory=PrinterCapabilities)
    last_seen: float = field(default_factory=time.monotonic)
    matched_queue_name: str | None = None
    secure_uri: str | None = None
    offline_generation: int = 0
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @classmethod
    def from_announcement(
        cls, announcement: ServiceAnnouncement, now: float | None = None
    ) -> Printer:
        """Create a fresh, online entry for a first-time announcement."""
        host = announcement.effective_host
        if not host:
            msg = f"Announcement for {announcement.name!r} has no host or address"
            raise ValueError(msg)
        port = announcement.effective_port
        uri = build_printer_uri(
            announcement.service_type, host, port, announcement.txt
        )
        return cls(
            id=printer_id_for(announcement.name, host, port),
            name=announcement.name,
            host=host,
            port=port,
            uri=uri,
            service_type=announcement.service_type,
            txt=dict(announcement.txt),
            secure_uri=uri if announcement.service_type == SERVICE_TYPE_IPPS else None,
            last_seen=time.monotonic() if now is None else now,
        )

    @property
    def submission_uri(self) -> str:
        """Return the URI jobs are sent to, preferring the secure variant."""
        return self.secure_uri or self.uri

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready snapshot for collaborators."""
        return {
            "id": self.id,
            "name": self.name,
            "host": self.host,
            "port": self.port,
            "uri": self.uri,
            "type": "ipps" if self.service_type == SERVICE_TYPE_IPPS else "ipp",
            "status": self.status.value,
            "online": self.online,
            "capabilities": self.capabilities.to_dict(),
            "matchedQueueName": self.matched_queue_name,
        }


@dataclass
class PrintJobOptions:
    """Options supplied with a print submission."""

    copies: int = 1
    sides: str | None = None
    color_mode: str | None = None
    mime_type: str = DEFAULT_MIME_TYPE
    user_name: str | None = None

    def __post_init__(self) -> None:
        """Clamp copies to at least one."""
        try:
            self.copies = max(1, int(self.copies))
        except (TypeError, ValueError):
            self.copies = 1
        self.mime_type = (self.mime_type or DEFAULT_MIME_TYPE).strip().lower()

    @classmethod
    def from_form(cls, form: Mapping[str, Any]) -> PrintJobOptions:
        """
        Build options from loosely typed form fields.

        Arguments:
            form: A mapping with optional ``copies``, ``sides``, ``colorMode``,
                ``mimeType`` and ``userName`` keys.

        Returns:
            The parsed options; a non-numeric ``copies`` becomes 1.

        """
        return cls(
            copies=form.get("copies") or 1,
            sides=form.get("sides") or None,
            color_mode=form.get("colorMode") or None,
            mime_type=form.get("mimeType") or DEFAULT_MIME_TYPE,
            user_name=form.get("userName") or None,
        )


@dataclass
class PrintJobRequest:
    """A print submission addressed to a registered printer."""

    printer_id: str
    payload: bytes
    file_name: str
    options: PrintJobOptions = field(default_factory=PrintJobOptions)


@dataclass
class PrintJobResult:
    """Normalized outcome of a print submission."""

    printer_id: str
    printer_name: str
    job_id: int | str | None = None
    job_state: str = JOB_STATE_UNKNOWN
    route: str = ROUTE_IPP

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready representation."""
        return {
            "jobId": self.job_id,
            "jobState": self.job_state,
            "printerId": self.printer_id,
            "printerName": self.printer_name,
            "route": self.route,
        }
