"""Match discovered printer names against local spooler queues."""

from __future__ import annotations

import re
from collections.abc import Sequence

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")
_UNSAFE_QUEUE_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def _normalize(name: str) -> str:
    return _NON_ALPHANUMERIC.sub("", name.lower())


def match_queue(printer_name: str, queues: Sequence[str]) -> str | None:
    """
    Find the local queue that corresponds to a discovered printer.

    Rules are tried in order, each over the whole queue list:

    1. case-insensitive exact match;
    2. equality after dropping non-alphanumerics, case-insensitively;
    3. case-insensitive substring containment in either direction, on the
       names as given or with non-alphanumerics dropped.

    Arguments:
        printer_name: The advertised printer name.
        queues: Local spooler queue names.

    Returns:
        The first matching queue name, or None.

    Example:
        >>> match_queue("EPSON L3250 Series", ["EPSON_L3250_Series_2", "HP"])
        'EPSON_L3250_Series_2'

    """
    if not printer_name:
        return None
    lowered = printer_name.lower()
    normalized = _normalize(printer_name)

    for queue in queues:
        if queue.lower() == lowered:
            return queue

    if normalized:
        for queue in queues:
            if _normalize(queue) == normalized:
                return queue

    for queue in queues:
        if _contains_either_way(queue.lower(), lowered) or _contains_either_way(
            _normalize(queue), normalized
        ):
            return queue

    return None


def _contains_either_way(left: str, right: str) -> bool:
    if not left or not right:
        return False
    return left in right or right in left


def sanitize_queue_name(printer_name: str) -> str:
    """Return a CUPS-safe queue name derived from a display name."""
    return _UNSAFE_QUEUE_CHARS.sub("_", printer_name.strip())
