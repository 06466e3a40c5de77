"""
Known device anomalies that are treated as success.

Some printers answer IPP requests in ways the protocol does not allow even
though the operation itself worked. Each anomaly observed in the field gets
an explicit entry here; nothing outside this table is normalized.

| Quirk | Matches | Applies to |
|---|---|---|
| unparseable-response | ``IppParseError`` | probe, submit |
| retry-after-accepted-body | ``IppRetryConnectionError`` after HTTP 5xx | submit |

``unparseable-response``: the printer is reachable and processed the request,
but its response body cannot be decoded. For probes the printer counts as
online with unknown capabilities; for submissions the document was already
transmitted, so the job is reported with unknown id and state.

``retry-after-accepted-body``: the printer answered the first attempt with an
unexpected HTTP status after the whole body was sent, and the client's retry
then hit a broken connection. The document was already delivered. Only server
error statuses qualify; a 4xx means the printer rejected the job.
"""

from __future__ import annotations

from dataclasses import dataclass

from lan_printer.ipp.exceptions import IppParseError, IppRetryConnectionError

OPERATION_PROBE = "probe"
OPERATION_SUBMIT = "submit"


@dataclass(frozen=True)
class Quirk:
    """A device anomaly that is normalized to a successful outcome."""

    name: str
    error_type: type[Exception]
    operations: frozenset[str]
    first_statuses: range | None = None


QUIRKS: tuple[Quirk, ...] = (
    Quirk(
        name="unparseable-response",
        error_type=IppParseError,
        operations=frozenset({OPERATION_PROBE, OPERATION_SUBMIT}),
    ),
    Quirk(
        name="retry-after-accepted-body",
        error_type=IppRetryConnectionError,
        operations=frozenset({OPERATION_SUBMIT}),
        first_statuses=range(500, 600),
    ),
)


def match_quirk(error: Exception, operation: str) -> Quirk | None:
    """
    Return the quirk that normalizes ``error`` for ``operation``, if any.

    Arguments:
        error: The exception raised by the IPP client.
        operation: Either ``"probe"`` or ``"submit"``.

    Returns:
        The matching quirk, or None if the error is a genuine failure.

    """
    for quirk in QUIRKS:
        if operation not in quirk.operations:
            continue
        if not isinstance(error, quirk.error_type):
            continue
        if (
            quirk.first_statuses is not None
            and getattr(error, "first_status", None) not in quirk.first_statuses
        ):
            continue
        return quirk
    return None
