"""Custom exceptions for the IPP client."""

from __future__ import annotations


class IppError(Exception):
    """Base class for other exceptions"""


class IppConnectionError(IppError):
    """Exception raised when the printer cannot be reached."""


class IppRetryConnectionError(IppConnectionError):
    """
    Exception raised when a retried request hits a broken connection.

    The first attempt already delivered the request body to the printer and
    was answered with an unexpected HTTP status.
    """

    def __init__(self, message: str, *, first_status: int) -> None:
        """Record the HTTP status that triggered the retry."""
        super().__init__(message)
        self.first_status = first_status


class IppParseError(IppError):
    """Exception raised when a response body cannot be decoded."""


class IppStatusError(IppError):
    """Exception raised for an HTTP or IPP error status."""

    def __init__(self, message: str, *, status: int) -> None:
        """Record the offending status code."""
        super().__init__(message)
        self.status = status
