"""
Print job dispatching.

This package contains the dispatcher that routes submissions and the two
transports it routes them to: the local spooler and direct IPP.
"""

from .dispatcher import JobDispatcher, needs_raster_conversion, select_route
from .protocol import ProtocolTransport
from .spooler import SpoolerTransport, parse_job_id, spooler_available

__all__ = [
    "JobDispatcher",
    "ProtocolTransport",
    "SpoolerTransport",
    "needs_raster_conversion",
    "parse_job_id",
    "select_route",
    "spooler_available",
]
