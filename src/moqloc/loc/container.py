"""LOC container: a header followed by length-prefixed payload frames.

Two decode results exist.  :func:`parse` returns a :class:`Container` that
owns independent copies of every byte range.  :func:`parse_view` returns a
:class:`ContainerView` whose payloads and custom field values are read-only
``memoryview`` slices of the source buffer.

A view borrows the source: the caller must keep it alive and unmodified until
:meth:`ContainerView.release` is called (or the ``with`` block exits).  While
the view is alive a ``bytearray`` source cannot be resized, Python raises
``BufferError`` instead, and any access after ``release`` raises
``ValueError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from ..config import ParseCfg
from .buffer import BufferReader, BufferWriter
from .errors import FailedToParseError
from .header import Field, Header
from .payload import payload_size, read_payloads, write_payloads
from .types import BufferLike, WritableBuffer

logger = logging.getLogger(__name__)


class _ContainerCodec:
    header: Header
    payload: Tuple

    def required_bytes(self) -> int:
        """Exact number of bytes :meth:`serialize` writes."""

        return self.header.size() + payload_size(self.payload)

    def serialize(self, buffer: WritableBuffer, offset: int = 0) -> int:
        """Write the container into *buffer* at *offset*.

        The capacity check covers the whole container, so a
        :class:`BufferTooSmallError` leaves *buffer* untouched.  Bytes past
        the returned count are not written.
        """

        writer = BufferWriter(buffer, offset)
        writer.ensure(self.required_bytes())
        self.header.write_to(writer)
        write_payloads(writer, self.payload)
        return writer.written

    def to_bytes(self) -> bytes:
        buffer = bytearray(self.required_bytes())
        self.serialize(buffer)
        return bytes(buffer)


@dataclass(frozen=True)
class Container(_ContainerCodec):
    """A container owning its header and payload bytes."""

    header: Header
    payload: Tuple[bytes, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.header, Header):
            raise TypeError("header must be a Header instance")
        payloads = []
        for item in self.payload:
            if not isinstance(item, (bytes, bytearray, memoryview)):
                raise TypeError("payloads must be bytes-like")
            payloads.append(bytes(item))
        object.__setattr__(self, "payload", tuple(payloads))

    @classmethod
    def parse(cls, buffer: BufferLike, *, cfg: Optional[ParseCfg] = None) -> "Container":
        return parse(buffer, cfg=cfg)


@dataclass(frozen=True)
class ContainerView(_ContainerCodec):
    """A container borrowing its byte ranges from a source buffer."""

    header: Header
    payload: Tuple[memoryview, ...] = ()

    @classmethod
    def parse(cls, buffer: BufferLike, *, cfg: Optional[ParseCfg] = None) -> "ContainerView":
        return parse_view(buffer, cfg=cfg)

    def to_owned(self) -> Container:
        """Copy every borrowed range into a :class:`Container`."""

        fields = tuple(
            Field(item.id, bytes(item.value), shortname=item.shortname, description=item.description)
            for item in self.header.fields
        )
        header = Header(self.header.timestamp, self.header.sequence_number, fields)
        return Container(header, tuple(bytes(item) for item in self.payload))

    def release(self) -> None:
        """Drop every borrowed range, ending the borrow of the source."""

        for item in self.payload:
            item.release()
        for item in self.header.fields:
            if isinstance(item.value, memoryview):
                item.value.release()

    def __enter__(self) -> "ContainerView":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


def _decode(buffer: BufferLike, *, copy: bool, cfg: Optional[ParseCfg]) -> Tuple[Header, Sequence]:
    reader = BufferReader(buffer, copy=copy)
    try:
        header = Header.read_from(reader, cfg=cfg)
        payloads = read_payloads(reader, cfg=cfg)
    except FailedToParseError as exc:
        logger.debug("failed to parse LOC container at offset %d: %s", reader.position, exc)
        reader.release(include_borrowed=True)
        raise
    finally:
        reader.release()
    return header, payloads


def parse(buffer: BufferLike, *, cfg: Optional[ParseCfg] = None) -> Container:
    """Decode *buffer* into a :class:`Container` holding copies."""

    header, payloads = _decode(buffer, copy=True, cfg=cfg)
    return Container(header, payloads)


def parse_view(buffer: BufferLike, *, cfg: Optional[ParseCfg] = None) -> ContainerView:
    """Decode *buffer* without copying; see the module docstring for lifetimes."""

    header, payloads = _decode(buffer, copy=False, cfg=cfg)
    return ContainerView(header, tuple(payloads))
