"""Bounds-checked cursors over byte buffers.

Every read and write goes through a capacity check first, so malformed input
surfaces as :class:`BoundsError` or :class:`VarIntTruncatedError` instead of
reading past the end of the source.
"""

from __future__ import annotations

import struct
from typing import List

from . import varint
from .errors import BoundsError, BufferTooSmallError
from .types import BufferLike, ByteChunk, WritableBuffer

_U64 = struct.Struct(">Q")


def byte_view(buffer: BufferLike) -> memoryview:
    """Return a flat unsigned-byte view of *buffer*.

    Raises ``TypeError`` for views that are not C-contiguous.
    """

    view = buffer if isinstance(buffer, memoryview) else memoryview(buffer)
    if view.ndim != 1 or view.format != "B" or not view.c_contiguous:
        view = view.cast("B")
    return view


class BufferReader:
    """Sequential reader over a byte buffer.

    With ``copy=True`` every byte range is returned as independent ``bytes``.
    With ``copy=False`` ranges are read-only ``memoryview`` slices that alias
    the source buffer.  The reader holds an export on the source until
    :meth:`release` is called.
    """

    def __init__(self, buffer: BufferLike, *, copy: bool = True, offset: int = 0) -> None:
        view = byte_view(buffer).toreadonly()
        if offset < 0 or offset > len(view):
            size = len(view)
            view.release()
            raise BoundsError(f"offset {offset} outside buffer of {size} bytes")
        self._view = view
        self._pos = offset
        self._borrowed: List[memoryview] = []
        self.copy = copy

    @property
    def position(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return len(self._view) - self._pos

    def at_end(self) -> bool:
        return self._pos >= len(self._view)

    def read_varint(self) -> int:
        value, consumed = varint.decode(self._view, self._pos)
        self._pos += consumed
        return value

    def read_bytes(self, length: int) -> ByteChunk:
        if length < 0 or length > self.remaining:
            raise BoundsError(
                f"cannot read {length} bytes at offset {self._pos}, only {self.remaining} available"
            )
        chunk = self._view[self._pos : self._pos + length]
        self._pos += length
        if self.copy:
            data = chunk.tobytes()
            chunk.release()
            return data
        self._borrowed.append(chunk)
        return chunk

    def read_u64(self) -> int:
        if self.remaining < _U64.size:
            raise BoundsError(f"cannot read u64 at offset {self._pos}, only {self.remaining} bytes available")
        (value,) = _U64.unpack_from(self._view, self._pos)
        self._pos += _U64.size
        return value

    def release(self, *, include_borrowed: bool = False) -> None:
        """Drop the reader's export on the source.

        Slices already handed out stay valid unless ``include_borrowed`` is
        set, which is how a failed zero-copy decode gives the source back.
        Safe to call more than once.
        """

        if include_borrowed:
            for chunk in self._borrowed:
                chunk.release()
        self._borrowed = []
        self._view.release()


class BufferWriter:
    """Sequential writer into a caller-supplied writable buffer."""

    def __init__(self, buffer: WritableBuffer, offset: int = 0) -> None:
        view = byte_view(buffer)
        if view.readonly:
            raise TypeError("destination buffer must be writable")
        if offset < 0 or offset > len(view):
            raise BoundsError(f"offset {offset} outside buffer of {len(view)} bytes")
        self._view = view
        self._start = offset
        self._pos = offset

    @property
    def position(self) -> int:
        return self._pos

    @property
    def written(self) -> int:
        return self._pos - self._start

    @property
    def remaining(self) -> int:
        return len(self._view) - self._pos

    def ensure(self, required: int) -> None:
        """Raise :class:`BufferTooSmallError` unless *required* bytes fit."""

        if required > self.remaining:
            raise BufferTooSmallError(required=required, available=self.remaining)

    def write_varint(self, value: int) -> int:
        written = varint.encode_into(value, self._view, self._pos)
        self._pos += written
        return written

    def write_bytes(self, data: ByteChunk) -> int:
        size = len(data)
        self.ensure(size)
        self._view[self._pos : self._pos + size] = data
        self._pos += size
        return size

    def write_u64(self, value: int) -> int:
        self.ensure(_U64.size)
        _U64.pack_into(self._view, self._pos, value)
        self._pos += _U64.size
        return _U64.size
