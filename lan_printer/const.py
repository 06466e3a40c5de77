"""Constants for the LAN printer service."""

from logging import getLogger

LOGGER = getLogger(__package__)

# Discovery feeds
SERVICE_TYPE_IPP = "_ipp._tcp.local."
SERVICE_TYPE_IPPS = "_ipps._tcp.local."
DISCOVERY_SERVICE_TYPES = (SERVICE_TYPE_IPP, SERVICE_TYPE_IPPS)
DEFAULT_IPP_PORT = 631
DEFAULT_RESOURCE_PATH = "ipp/print"
TXT_RESOURCE_PATH = "rp"
SERVICE_INFO_TIMEOUT_MS = 3000

# Liveness
SWEEP_INTERVAL_SECONDS = 30
LIVENESS_WINDOW_SECONDS = 60
PRINTER_ID_LENGTH = 12

# Events
EVENT_ADDED = "added"
EVENT_UPDATED = "updated"

# IPP
IPP_CONTENT_TYPE = "application/ipp"
IPP_CHARSET = "utf-8"
IPP_NATURAL_LANGUAGE = "en"
DEFAULT_USER_NAME = "PairDrop"
DEFAULT_MIME_TYPE = "application/pdf"
PWG_RASTER_MIME_TYPE = "image/pwg-raster"
PROBE_TIMEOUT_SECONDS = 10
SUBMIT_TIMEOUT_SECONDS = 300
PROBE_REQUESTED_ATTRIBUTES = (
    "printer-state",
    "printer-state-reasons",
    "document-format-supported",
    "color-supported",
    "sides-supported",
    "media-supported",
)

# Spooler
LP_COMMAND = "lp"
LPSTAT_COMMAND = "lpstat"
SPOOLER_TIMEOUT_SECONDS = 60
SPOOL_FILE_PREFIX = "lan-printer-"

# Uploads
MAX_PAYLOAD_BYTES = 100 * 1024 * 1024

# Raster
RASTER_DEFAULT_RESOLUTION = 300
POINTS_PER_INCH = 72

# Routes reported in job results
ROUTE_SPOOLER = "spooler"
ROUTE_IPP = "ipp"
ROUTE_IPP_RASTER = "ipp-raster"
