"""
Printer discovery.

This package contains the registry of discovered printers, the discovery
manager that feeds it, the capability prober and the spooler queue matcher.
"""

from .manager import DiscoveryManager, announcement_from_info, normalize_txt
from .matcher import match_queue, sanitize_queue_name
from .prober import CapabilityProber, ProbeResult, capabilities_from_response
from .registry import PrinterListener, PrinterRegistry

__all__ = [
    "CapabilityProber",
    "DiscoveryManager",
    "PrinterListener",
    "PrinterRegistry",
    "ProbeResult",
    "announcement_from_info",
    "capabilities_from_response",
    "match_queue",
    "normalize_txt",
    "sanitize_queue_name",
]
