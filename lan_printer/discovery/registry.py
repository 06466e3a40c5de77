"""
Printer Registry for the LAN printer service.

This module keeps the discovered printers keyed by their stable id and
notifies subscribers when entries are added or updated.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import Any

from lan_printer.const import EVENT_ADDED, EVENT_UPDATED, LOGGER
from lan_printer.models import Printer

PrinterListener = Callable[[str, Printer], Awaitable[None] | None]


class PrinterRegistry:
    """
    Registry of discovered printers.

    Entries are never removed; an offline printer stays registered so it
    keeps its identity and matched queue when it comes back.
    """

    def __init__(self, logger: Any = LOGGER) -> None:
        """Initialize an empty printer registry."""
        self._printers: dict[str, Printer] = {}
        self._listeners: list[PrinterListener] = []
        self._background_tasks: set[asyncio.Task] = set()
        self.logger = logger

    def add_printer(self, printer: Printer) -> Printer:
        """
        Insert a printer unless one with the same id already exists.

        Arguments:
            printer: The printer instance to add.

        Returns:
            The registered entry, which is the existing one on a duplicate id.

        """
        return self._printers.setdefault(printer.id, printer)

    def get_printer(self, printer_id: str) -> Printer | None:
        """Get a printer by id."""
        return self._printers.get(printer_id)

    def get_all_printers(self) -> list[Printer]:
        """Get every registered printer, online or not."""
        return list(self._printers.values())

    def get_online_printers(self) -> list[Printer]:
        """Get the printers currently marked online."""
        return [printer for printer in self._printers.values() if printer.online]

    def count(self) -> int:
        """Return the number of registered printers."""
        return len(self._printers)

    def __contains__(self, printer_id: object) -> bool:
        """Return True if ``printer_id`` is registered."""
        return printer_id in self._printers

    def subscribe(self, listener: PrinterListener) -> Callable[[], None]:
        """
        Register a listener for ``added`` and ``updated`` events.

        Listeners are called with the event name and the printer entry. A
        coroutine listener is scheduled as a task and not awaited.

        Returns:
            A callable that removes the listener.

        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event: str, printer: Printer) -> None:
        """Notify every listener; failures are logged and never propagate."""
        if event not in (EVENT_ADDED, EVENT_UPDATED):
            msg = f"Unknown printer event: {event}"
            raise ValueError(msg)
        for listener in list(self._listeners):
            try:
                result = listener(event, printer)
                if inspect.isawaitable(result):
                    task = asyncio.ensure_future(result)
                    self._background_tasks.add(task)
                    task.add_done_callback(self._listener_done)
            except Exception:
                self.logger.exception(
                    "Printer listener failed for %s event of %s", event, printer.name
                )

    def _listener_done(self, task: asyncio.Task) -> None:
        self._background_tasks.discard(task)
        if task.cancelled():
            return
        if (error := task.exception()) is not None:
            self.logger.error("Printer listener task failed: %r", error)

    async def aclose(self) -> None:
        """Cancel listener tasks still running and drop all listeners."""
        self._listeners.clear()
        tasks = list(self._background_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._background_tasks.clear()
