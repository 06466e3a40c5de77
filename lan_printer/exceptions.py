"""Custom exceptions for the LAN printer service."""

from __future__ import annotations


class LanPrinterError(Exception):
    """Base class for other exceptions"""


class DiscoveryError(LanPrinterError):
    """Exception raised when a service announcement cannot be handled."""


class ProbeError(LanPrinterError):
    """Exception raised when a capability probe genuinely fails."""


class EncodingError(LanPrinterError):
    """Exception raised for structurally invalid raster encoder input."""


class SubmissionError(LanPrinterError):
    """Base class for errors surfaced to callers of a print submission."""


class PrinterNotFoundError(SubmissionError):
    """Exception raised when the target printer id is not registered."""


class PrinterOfflineError(SubmissionError):
    """Exception raised when the target printer is marked offline."""


class PayloadTooLargeError(SubmissionError):
    """Exception raised when a payload exceeds the configured size limit."""


class TransportError(SubmissionError):
    """Exception raised when the protocol transport fails to submit a job."""


class SpoolerError(SubmissionError):
    """Exception raised when the local spooler rejects or fails a job."""

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        """Store the captured diagnostics of the spooler command."""
        super().__init__(message)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

    @property
    def diagnostics(self) -> str:
        """Return the combined command output."""
        return "\n".join(
            part.strip() for part in (self.stdout, self.stderr) if part.strip()
        )
