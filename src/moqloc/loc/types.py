"""Type aliases shared by the codec modules."""

from __future__ import annotations

from typing import Union

BufferLike = Union[bytes, bytearray, memoryview]
"""Any source the decoder accepts; non-byte memoryviews are cast to bytes."""

WritableBuffer = Union[bytearray, memoryview]
"""Destination for serialization; memoryviews must be writable."""

ByteChunk = Union[bytes, memoryview]
"""A decoded byte range: owned ``bytes`` or a read-only borrowed view."""
