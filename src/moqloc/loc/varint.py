"""Variable length integer primitive.

Integers are encoded in 1, 2, 4 or 8 bytes.  The two most significant bits of
the leading byte carry the width (``00`` = 1, ``01`` = 2, ``10`` = 4,
``11`` = 8) and the remaining bits hold the value in network byte order, so a
reader always knows how many bytes to consume after seeing the first one.
"""

from __future__ import annotations

from typing import Tuple

from .errors import BufferTooSmallError, VarIntOverflowError, VarIntTruncatedError
from .types import BufferLike, WritableBuffer

MAX_VARINT = (1 << 62) - 1

_WIDTH_PREFIX = {1: 0x00, 2: 0x40, 4: 0x80, 8: 0xC0}


def width(value: int) -> int:
    """Return the number of bytes needed to encode *value*."""

    if value < 0:
        raise VarIntOverflowError(f"varint must be non-negative, got {value}")
    if value <= 0x3F:
        return 1
    if value <= 0x3FFF:
        return 2
    if value <= 0x3FFFFFFF:
        return 4
    if value <= MAX_VARINT:
        return 8
    raise VarIntOverflowError(f"varint value {value} exceeds {MAX_VARINT}")


def encoded_width(first_byte: int) -> int:
    """Return the total encoded width announced by a leading byte."""

    return 1 << (first_byte >> 6)


def encode(value: int) -> bytes:
    """Return the wire form of *value*."""

    size = width(value)
    data = bytearray(value.to_bytes(size, "big"))
    data[0] |= _WIDTH_PREFIX[size]
    return bytes(data)


def encode_into(value: int, buffer: WritableBuffer, offset: int = 0) -> int:
    """Write *value* into *buffer* at *offset* and return the bytes written."""

    data = encode(value)
    available = len(buffer) - offset
    if available < len(data):
        raise BufferTooSmallError(required=len(data), available=max(available, 0))
    buffer[offset : offset + len(data)] = data
    return len(data)


def decode(buffer: BufferLike, offset: int = 0) -> Tuple[int, int]:
    """Decode a varint from *buffer* at *offset*.

    Returns ``(value, consumed)``.
    """

    if offset < 0 or offset >= len(buffer):
        raise VarIntTruncatedError(f"no varint at offset {offset} (buffer length {len(buffer)})")
    first = buffer[offset]
    size = encoded_width(first)
    if offset + size > len(buffer):
        raise VarIntTruncatedError(
            f"varint at offset {offset} needs {size} bytes, only {len(buffer) - offset} available"
        )
    value = first & 0x3F
    for index in range(offset + 1, offset + size):
        value = (value << 8) | buffer[index]
    return value, size
