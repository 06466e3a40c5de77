"""Debug file for testing LAN printer discovery and printing."""

import asyncio
import json
import logging
import os
import sys
from pathlib import Path

# Add project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, project_root)

from loguru import logger  # noqa: E402

from lan_printer import (  # noqa: E402
    LanPrinterError,
    Printer,
    PrinterService,
    PrintJobOptions,
    ServiceConfig,
)

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
DISCOVERY_SECONDS = float(os.getenv("DISCOVERY_SECONDS", "10"))
PRINT_FILE = os.getenv("PRINT_FILE")
PRINT_MIME_TYPE = os.getenv("PRINT_MIME_TYPE", "application/pdf")
PRINTER_NAME = os.getenv("PRINTER_NAME")

logger.remove()
logger.add(sys.stdout, colorize=True, level=LOG_LEVEL)


class InterceptHandler(logging.Handler):
    """Forward stdlib log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(exception=record.exc_info).log(level, record.getMessage())


logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)


def print_printer_info(printer: Printer, index: int | None = None) -> None:
    """Print printer information in a copy-paste friendly format."""
    prefix = f"  {index}. " if index is not None else ""

    logger.info("=" * 80)
    logger.info(f"{prefix}Discovered Printer Information:")
    logger.info("=" * 80)
    logger.info(f"Name:             {printer.name}")
    logger.info(f"URI:              {printer.uri}")
    logger.info(f"Secure URI:       {printer.secure_uri or '-'}")
    logger.info(f"Printer ID:       {printer.id}")
    logger.info(f"Status:           {printer.status.value}")
    logger.info(f"Spooler Queue:    {printer.matched_queue_name or '-'}")
    logger.info("-" * 80)
    logger.info("JSON Representation (for GitHub issues):")
    logger.info("-" * 80)
    logger.info(json.dumps(printer.to_dict(), indent=2))
    logger.info("=" * 80)


def pick_printer(printers: list[Printer]) -> Printer | None:
    """Pick the printer named by PRINTER_NAME, or the first one."""
    if PRINTER_NAME:
        for printer in printers:
            if printer.name.lower() == PRINTER_NAME.lower():
                return printer
        return None
    return printers[0] if printers else None


async def main() -> None:
    """
    Discover printers on the local network and optionally print a file.

    Browses for DISCOVERY_SECONDS, prints every printer found, then submits
    PRINT_FILE to PRINTER_NAME (or the first printer) if PRINT_FILE is set.
    """
    config = ServiceConfig.from_env({**os.environ, "PRINTER_DISCOVERY": "true"})
    async with PrinterService(config) as service:
        service.subscribe(
            lambda event, printer: logger.debug(f"Printer {event}: {printer.name}")
        )
        logger.info(f"Browsing for printers for {DISCOVERY_SECONDS}s")
        await asyncio.sleep(DISCOVERY_SECONDS)

        printers = service.get_online_printers()
        if not printers:
            logger.warning("No printers discovered.")
            return
        for index, printer in enumerate(printers, start=1):
            print_printer_info(printer, index)

        if not PRINT_FILE:
            return
        printer = pick_printer(printers)
        if printer is None:
            logger.error(f"Printer {PRINTER_NAME!r} not found")
            return

        path = Path(PRINT_FILE)
        options = PrintJobOptions(mime_type=PRINT_MIME_TYPE)
        try:
            result = await service.submit_print_job(
                printer.id, path.read_bytes(), path.name, options
            )
        except LanPrinterError as e:
            logger.error(f"Print job failed: {e}")
            return
        logger.info(f"Print job submitted: {json.dumps(result.to_dict())}")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Stopped")
