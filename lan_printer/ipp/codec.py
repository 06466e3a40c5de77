"""
IPP/1.1 message encoding and decoding.

This module implements the binary encoding of RFC 8010: a fixed 8 byte
header (version, operation or status code, request id) followed by
delimited attribute groups, an end-of-attributes tag, and optional
document data.
"""

from __future__ import annotations

import itertools
import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from .exceptions import IppParseError

IPP_VERSION = (1, 1)
HEADER_LENGTH = 8
MAX_REQUEST_ID = 0x7FFFFFFF
MIN_ERROR_STATUS = 0x0400

_request_ids = itertools.count(1)


class IppTag(IntEnum):
    """Delimiter and value tags (RFC 8010 section 3.5)."""

    OPERATION = 0x01
    JOB = 0x02
    END = 0x03
    PRINTER = 0x04
    UNSUPPORTED_GROUP = 0x05

    UNSUPPORTED_VALUE = 0x10
    UNKNOWN = 0x12
    NO_VALUE = 0x13

    INTEGER = 0x21
    BOOLEAN = 0x22
    ENUM = 0x23

    OCTET_STRING = 0x30
    DATETIME = 0x31
    RESOLUTION = 0x32
    RANGE = 0x33
    BEGIN_COLLECTION = 0x34
    TEXT_LANG = 0x35
    NAME_LANG = 0x36
    END_COLLECTION = 0x37

    TEXT = 0x41
    NAME = 0x42
    KEYWORD = 0x44
    URI = 0x45
    URI_SCHEME = 0x46
    CHARSET = 0x47
    NATURAL_LANGUAGE = 0x48
    MIME_TYPE = 0x49
    MEMBER_NAME = 0x4A


class IppOperation(IntEnum):
    """Operation ids used by this package."""

    PRINT_JOB = 0x0002
    GET_PRINTER_ATTRIBUTES = 0x000B


GROUP_TAGS = frozenset(
    {
        IppTag.OPERATION,
        IppTag.JOB,
        IppTag.PRINTER,
        IppTag.UNSUPPORTED_GROUP,
    }
)
_STRING_TAGS = frozenset(
    {
        IppTag.TEXT,
        IppTag.NAME,
        IppTag.KEYWORD,
        IppTag.URI,
        IppTag.URI_SCHEME,
        IppTag.CHARSET,
        IppTag.NATURAL_LANGUAGE,
        IppTag.MIME_TYPE,
        IppTag.MEMBER_NAME,
    }
)


def next_request_id() -> int:
    """Return a process-wide increasing request id."""
    return next(_request_ids) % MAX_REQUEST_ID or 1


@dataclass
class IppAttribute:
    """A named attribute with one or more values of the same syntax."""

    name: str
    tag: IppTag
    values: list[Any]


@dataclass
class IppRequest:
    """An IPP request ready to be encoded."""

    operation: IppOperation
    groups: list[tuple[IppTag, list[IppAttribute]]] = field(default_factory=list)
    data: bytes = b""
    request_id: int = field(default_factory=next_request_id)
    version: tuple[int, int] = IPP_VERSION

    def add_group(self, tag: IppTag, attributes: list[IppAttribute]) -> None:
        """Append an attribute group, skipping empty non-operation groups."""
        if attributes or tag == IppTag.OPERATION:
            self.groups.append((tag, attributes))


@dataclass
class IppResponse:
    """A decoded IPP response."""

    version: tuple[int, int]
    status_code: int
    request_id: int
    groups: list[tuple[int, dict[str, list[Any]]]] = field(default_factory=list)
    data: bytes = b""

    @property
    def is_error(self) -> bool:
        """Return True for client-error and server-error status codes."""
        return self.status_code >= MIN_ERROR_STATUS

    def group(self, tag: IppTag) -> dict[str, list[Any]]:
        """Return the first group with the given delimiter, or an empty dict."""
        for group_tag, attributes in self.groups:
            if group_tag == tag:
                return attributes
        return {}

    def first(self, tag: IppTag, name: str, default: Any = None) -> Any:
        """Return the first value of an attribute in the given group."""
        values = self.group(tag).get(name)
        if not values:
            return default
        return values[0]


def _encode_value(tag: IppTag, value: Any) -> bytes:
    if tag in (IppTag.INTEGER, IppTag.ENUM):
        return struct.pack(">i", int(value))
    if tag == IppTag.BOOLEAN:
        return struct.pack(">b", 1 if value else 0)
    if tag == IppTag.RANGE:
        lower, upper = value
        return struct.pack(">ii", lower, upper)
    if tag in (IppTag.NO_VALUE, IppTag.UNKNOWN, IppTag.UNSUPPORTED_VALUE):
        return b""
    if isinstance(value, bytes):
        return value
    return str(value).encode("utf-8")


def _encode_attribute(attribute: IppAttribute) -> bytes:
    encoded = b""
    name = attribute.name.encode("utf-8")
    for index, value in enumerate(attribute.values):
        raw = _encode_value(attribute.tag, value)
        attr_name = name if index == 0 else b""
        encoded += struct.pack(">bH", attribute.tag, len(attr_name))
        encoded += attr_name
        encoded += struct.pack(">H", len(raw))
        encoded += raw
    return encoded


def encode_request(request: IppRequest) -> bytes:
    """
    Encode a request into its wire representation.

    Arguments:
        request: The request to encode.

    Returns:
        The encoded message followed by the document data, if any.

    """
    encoded = struct.pack(
        ">bbHi",
        request.version[0],
        request.version[1],
        request.operation,
        request.request_id,
    )
    for tag, attributes in request.groups:
        encoded += struct.pack(">b", tag)
        for attribute in attributes:
            encoded += _encode_attribute(attribute)
    encoded += struct.pack(">b", IppTag.END)
    return encoded + request.data


class _Reader:
    """Bounds-checked cursor over a response body."""

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.offset = 0

    def remaining(self) -> int:
        return len(self.data) - self.offset

    def take(self, length: int) -> bytes:
        if length < 0 or self.offset + length > len(self.data):
            msg = (
                f"Truncated IPP message: need {length} bytes at offset "
                f"{self.offset}, {self.remaining()} available"
            )
            raise IppParseError(msg)
        chunk = self.data[self.offset : self.offset + length]
        self.offset += length
        return chunk

    def byte(self) -> int:
        return self.take(1)[0]

    def short(self) -> int:
        return struct.unpack(">H", self.take(2))[0]


def _decode_value(tag: int, raw: bytes) -> Any:  # noqa: PLR0911
    try:
        if tag in (IppTag.INTEGER, IppTag.ENUM):
            return struct.unpack(">i", raw)[0]
        if tag == IppTag.BOOLEAN:
            return struct.unpack(">?", raw)[0]
        if tag == IppTag.RANGE:
            return struct.unpack(">ii", raw)
        if tag == IppTag.RESOLUTION:
            return struct.unpack(">iib", raw)
    except struct.error as e:
        msg = f"Invalid value length {len(raw)} for tag 0x{tag:02x}"
        raise IppParseError(msg) from e
    if tag in (IppTag.TEXT_LANG, IppTag.NAME_LANG):
        reader = _Reader(raw)
        reader.take(reader.short())
        return reader.take(reader.short()).decode("utf-8", errors="replace")
    if tag in _STRING_TAGS:
        return raw.decode("utf-8", errors="replace")
    if 0x10 <= tag <= 0x1F:  # noqa: PLR2004
        return None
    return raw


def _read_collection(reader: _Reader) -> dict[str, list[Any]]:
    members: dict[str, list[Any]] = {}
    member_name: str | None = None
    while True:
        tag = reader.byte()
        name_length = reader.short()
        reader.take(name_length)
        raw = reader.take(reader.short())
        if tag == IppTag.END_COLLECTION:
            return members
        if tag == IppTag.MEMBER_NAME:
            member_name = raw.decode("utf-8", errors="replace")
            members.setdefault(member_name, [])
            continue
        if member_name is None:
            msg = "Collection value without a member name"
            raise IppParseError(msg)
        if tag == IppTag.BEGIN_COLLECTION:
            members[member_name].append(_read_collection(reader))
        else:
            members[member_name].append(_decode_value(tag, raw))


def parse_response(data: bytes) -> IppResponse:
    """
    Decode a response body.

    Arguments:
        data: The raw HTTP response body.

    Returns:
        The decoded response.

    Raises:
        IppParseError: If the body is not a well formed IPP message.

    """
    if len(data) < HEADER_LENGTH:
        msg = f"IPP response too short: {len(data)} bytes"
        raise IppParseError(msg)

    major, minor, status_code, request_id = struct.unpack(">bbHi", data[:8])
    response = IppResponse(
        version=(major, minor), status_code=status_code, request_id=request_id
    )
    reader = _Reader(data)
    reader.offset = HEADER_LENGTH
    current: dict[str, list[Any]] | None = None
    last_name: str | None = None

    while True:
        if reader.remaining() == 0:
            msg = "IPP response ended without end-of-attributes tag"
            raise IppParseError(msg)
        tag = reader.byte()
        if tag == IppTag.END:
            response.data = data[reader.offset :]
            return response
        if tag in GROUP_TAGS:
            current = {}
            response.groups.append((tag, current))
            last_name = None
            continue
        if current is None:
            msg = f"Value tag 0x{tag:02x} outside of an attribute group"
            raise IppParseError(msg)

        name_length = reader.short()
        if name_length:
            last_name = reader.take(name_length).decode("utf-8", errors="replace")
            current.setdefault(last_name, [])
        elif last_name is None:
            msg = "Additional value without a preceding attribute name"
            raise IppParseError(msg)

        raw = reader.take(reader.short())
        if tag == IppTag.BEGIN_COLLECTION:
            current[last_name].append(_read_collection(reader))
        else:
            current[last_name].append(_decode_value(tag, raw))
