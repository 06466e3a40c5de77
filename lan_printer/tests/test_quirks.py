"""Tests for the device quirk table."""

import pytest

from lan_printer.ipp.exceptions import (
    IppConnectionError,
    IppParseError,
    IppRetryConnectionError,
    IppStatusError,
)
from lan_printer.quirks import OPERATION_PROBE, OPERATION_SUBMIT, QUIRKS, match_quirk


@pytest.mark.parametrize(
    ("error", "operation", "expected"),
    [
        (IppParseError("x"), OPERATION_PROBE, "unparseable-response"),
        (IppParseError("x"), OPERATION_SUBMIT, "unparseable-response"),
        (
            IppRetryConnectionError("x", first_status=500),
            OPERATION_SUBMIT,
            "retry-after-accepted-body",
        ),
        (IppRetryConnectionError("x", first_status=500), OPERATION_PROBE, None),
        (IppRetryConnectionError("x", first_status=400), OPERATION_SUBMIT, None),
        (IppRetryConnectionError("x", first_status=302), OPERATION_SUBMIT, None),
        (IppConnectionError("x"), OPERATION_SUBMIT, None),
        (IppStatusError("x", status=0x0400), OPERATION_SUBMIT, None),
        (ValueError("x"), OPERATION_PROBE, None),
    ],
)
def test_match_quirk(error: Exception, operation: str, expected: str | None) -> None:
    """Test which failures are normalized for which operation."""
    quirk = match_quirk(error, operation)

    assert (quirk.name if quirk else None) == expected


def test_quirk_names_are_unique() -> None:
    """Test that every table entry has its own name."""
    names = [quirk.name for quirk in QUIRKS]
    assert len(names) == len(set(names))
