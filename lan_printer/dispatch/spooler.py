"""Local CUPS spooler transport (``lp``/``lpstat``)."""

from __future__ import annotations

import asyncio
import contextlib
import platform
import re
import secrets
import shutil
import time
from pathlib import Path
from typing import Any

from lan_printer.const import (
    LOGGER,
    LP_COMMAND,
    LPSTAT_COMMAND,
    ROUTE_SPOOLER,
    SPOOL_FILE_PREFIX,
    SPOOLER_TIMEOUT_SECONDS,
)
from lan_printer.discovery.matcher import sanitize_queue_name
from lan_printer.exceptions import SpoolerError
from lan_printer.models import (
    JOB_STATE_UNKNOWN,
    Printer,
    PrintJobOptions,
    PrintJobResult,
)

# sample: "request id is HP_LaserJet-42 (1 file(s))"
JOB_ID_PATTERN = re.compile(r"request id is (\S+)")
_UNSAFE_SUFFIX_CHARS = re.compile(r"[^A-Za-z0-9.]")


def spooler_available() -> bool:
    """Return True if the host has a usable ``lp`` command."""
    return platform.system().lower() != "windows" and shutil.which(LP_COMMAND) is not None


def parse_job_id(output: str) -> str | None:
    """Extract the spooler job id from ``lp`` output, if present."""
    if match := JOB_ID_PATTERN.search(output):
        return match.group(1)
    return None


async def _kill(proc: asyncio.subprocess.Process) -> None:
    with contextlib.suppress(ProcessLookupError):
        proc.kill()
    await proc.wait()


class SpoolerTransport:
    """Submit jobs through the local print spooler."""

    def __init__(
        self,
        spool_dir: str | Path,
        *,
        timeout: float = SPOOLER_TIMEOUT_SECONDS,
        available: bool | None = None,
        logger: Any = LOGGER,
    ) -> None:
        """
        Initialize a SpoolerTransport.

        Arguments:
            spool_dir: Directory used to stage payloads for ``lp``.
            timeout: Seconds allowed for each spooler command.
            available: Override for spooler detection; detected when None.
            logger: The logger to use.

        """
        self._spool_dir = Path(spool_dir)
        self._timeout = timeout
        self._available = spooler_available() if available is None else available
        self.logger = logger

    @property
    def available(self) -> bool:
        """Return True if jobs can be routed through the spooler."""
        return self._available

    async def list_queues(self) -> list[str]:
        """
        List the local spooler queues.

        Returns:
            Queue names from ``lpstat -a``; empty if the spooler is
            unavailable or the command fails.

        """
        if not self._available:
            return []
        try:
            returncode, stdout, stderr = await self._run([LPSTAT_COMMAND, "-a"])
        except SpoolerError as e:
            self.logger.debug("Unable to list spooler queues: %s", e)
            return []
        if returncode != 0:
            self.logger.debug("lpstat exited with %s: %s", returncode, stderr.strip())
            return []
        queues = []
        for line in stdout.splitlines():
            parts = line.strip().split()
            if parts:
                queues.append(parts[0])
        return queues

    @staticmethod
    def resolve_queue(printer: Printer) -> str:
        """Return the matched queue, or a sanitized form of the printer name."""
        return printer.matched_queue_name or sanitize_queue_name(printer.name)

    def spool_path(self, file_name: str) -> Path:
        """Return a collision-resistant staging path keeping the file extension."""
        suffix = _UNSAFE_SUFFIX_CHARS.sub("", Path(file_name).suffix)
        token = f"{time.time_ns()}-{secrets.token_hex(4)}"
        return self._spool_dir / f"{SPOOL_FILE_PREFIX}{token}{suffix}"

    @staticmethod
    def build_command(
        queue: str, path: Path, file_name: str, options: PrintJobOptions
    ) -> list[str]:
        """Build the ``lp`` command line for a staged payload."""
        cmd = [LP_COMMAND, "-d", queue, "-n", str(options.copies)]
        if file_name:
            cmd.extend(["-t", file_name])
        if options.sides:
            cmd.extend(["-o", f"sides={options.sides}"])
        if options.color_mode:
            cmd.extend(["-o", f"print-color-mode={options.color_mode}"])
        cmd.append(str(path))
        return cmd

    async def submit(
        self,
        printer: Printer,
        payload: bytes,
        file_name: str,
        options: PrintJobOptions,
    ) -> PrintJobResult:
        """
        Stage the payload and hand it to ``lp``.

        The staged file is removed on every exit path.

        Raises:
            SpoolerError: If staging fails, the command cannot be run, times
                out, or exits with a non-zero status.

        """
        queue = self.resolve_queue(printer)
        path = self.spool_path(file_name)
        try:
            try:
                path.write_bytes(payload)
            except OSError as e:
                msg = f"Unable to stage print job at {path}: {e}"
                raise SpoolerError(msg) from e

            cmd = self.build_command(queue, path, file_name, options)
            self.logger.info("Spooling %s to queue %s", file_name, queue)
            returncode, stdout, stderr = await self._run(cmd)
        finally:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                self.logger.warning("Unable to remove staged file %s: %s", path, e)

        if returncode != 0:
            msg = f"lp exited with status {returncode} for queue {queue}"
            raise SpoolerError(
                msg, returncode=returncode, stdout=stdout, stderr=stderr
            )

        job_id = parse_job_id(stdout)
        self.logger.debug("Spooler accepted %s as job %s", file_name, job_id)
        return PrintJobResult(
            printer_id=printer.id,
            printer_name=printer.name,
            job_id=job_id,
            job_state=JOB_STATE_UNKNOWN,
            route=ROUTE_SPOOLER,
        )

    async def _run(self, cmd: list[str]) -> tuple[int, str, str]:
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            msg = f"Unable to run {cmd[0]}: {e}"
            raise SpoolerError(msg) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(), timeout=self._timeout
            )
        except asyncio.TimeoutError as e:
            await _kill(proc)
            msg = f"{cmd[0]} timed out after {self._timeout}s"
            raise SpoolerError(msg) from e
        except asyncio.CancelledError:
            await _kill(proc)
            raise

        return (
            proc.returncode if proc.returncode is not None else -1,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )
