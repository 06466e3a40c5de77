"""LAN printer discovery and print job submission."""

from .config import ServiceConfig
from .exceptions import (
    DiscoveryError,
    EncodingError,
    LanPrinterError,
    PayloadTooLargeError,
    PrinterNotFoundError,
    PrinterOfflineError,
    ProbeError,
    SpoolerError,
    SubmissionError,
    TransportError,
)
from .models import (
    Printer,
    PrinterCapabilities,
    PrinterStatus,
    PrintJobOptions,
    PrintJobRequest,
    PrintJobResult,
    ServiceAnnouncement,
)
from .service import PrinterService

__all__ = [
    "DiscoveryError",
    "EncodingError",
    "LanPrinterError",
    "PayloadTooLargeError",
    "PrintJobOptions",
    "PrintJobRequest",
    "PrintJobResult",
    "Printer",
    "PrinterCapabilities",
    "PrinterNotFoundError",
    "PrinterOfflineError",
    "PrinterService",
    "PrinterStatus",
    "ProbeError",
    "ServiceAnnouncement",
    "ServiceConfig",
    "SpoolerError",
    "SubmissionError",
    "TransportError",
]
