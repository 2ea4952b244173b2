"""LOC header: fixed timestamp / sequence number fields plus custom TLVs.

Wire layout::

    varint(1) varint(8) u64   timestamp, microseconds since the epoch
    varint(2) varint(8) u64   sequence number
    varint(id) varint(len) value...   custom fields, insertion order
    varint(3)                 stop tag

The fixed 8-byte values are written in network byte order.  Tags other than
1, 2 and 3 are carried through parsing as opaque :class:`Field` objects so
that containers produced by newer writers round-trip unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Tuple, Union

from ..config import DEFAULT_PARSE_CFG, ParseCfg
from . import varint
from .buffer import BufferReader, BufferWriter, byte_view
from .errors import (
    BoundsError,
    FailedToParseError,
    HeaderValidationError,
    LimitExceededError,
    MissingFieldError,
    VarIntError,
    VarIntTruncatedError,
)
from .types import BufferLike, ByteChunk, WritableBuffer

TIMESTAMP_TAG = 1
SEQUENCE_NUMBER_TAG = 2
STOP_TAG = 3
RESERVED_TAGS = frozenset({TIMESTAMP_TAG, SEQUENCE_NUMBER_TAG, STOP_TAG})

FIXED_FIELD_LENGTH = 8
MAX_U64 = (1 << 64) - 1

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _tlv_size(tag: int, length: int) -> int:
    return varint.width(tag) + varint.width(length) + length


def _check_u64(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise HeaderValidationError(f"'{name}' must be an integer")
    if value < 0 or value > MAX_U64:
        raise HeaderValidationError(f"'{name}' must fit in an unsigned 64-bit integer")
    return value


def _as_utc(when: datetime) -> datetime:
    if when.tzinfo is None:
        return when.replace(tzinfo=timezone.utc)
    return when


@dataclass(frozen=True)
class Field:
    """A custom header entry.

    Only ``id`` and ``value`` travel on the wire.  ``shortname`` and
    ``description`` are labels for callers and do not take part in equality.
    Values decoded in zero-copy mode are read-only ``memoryview`` objects
    borrowed from the source buffer.
    """

    id: int
    value: ByteChunk
    shortname: str = field(default="", compare=False)
    description: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if isinstance(self.id, bool) or not isinstance(self.id, int):
            raise HeaderValidationError("field id must be an integer")
        if self.id in RESERVED_TAGS:
            raise HeaderValidationError(f"field id {self.id} is reserved")
        try:
            varint.width(self.id)
        except VarIntError as exc:
            raise HeaderValidationError(f"field id {self.id} is not encodable") from exc
        if isinstance(self.value, bytearray):
            object.__setattr__(self, "value", bytes(self.value))
        elif isinstance(self.value, memoryview):
            try:
                object.__setattr__(self, "value", byte_view(self.value))
            except TypeError as exc:
                raise HeaderValidationError("field value must be a contiguous buffer") from exc
        elif not isinstance(self.value, bytes):
            raise HeaderValidationError("field value must be bytes")

    @property
    def encoded_size(self) -> int:
        return _tlv_size(self.id, len(self.value))


@dataclass(frozen=True)
class Header:
    """Immutable LOC header.

    Build one directly from raw microseconds, with :meth:`from_datetime`, or
    through :class:`HeaderBuilder` when custom fields are collected
    incrementally.
    """

    timestamp: int
    sequence_number: int
    fields: Tuple[Field, ...] = ()
    _size: int = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        _check_u64("timestamp", self.timestamp)
        _check_u64("sequence_number", self.sequence_number)
        fields = tuple(self.fields)
        for item in fields:
            if not isinstance(item, Field):
                raise HeaderValidationError("header fields must be Field instances")
        object.__setattr__(self, "fields", fields)

        size = _tlv_size(TIMESTAMP_TAG, FIXED_FIELD_LENGTH)
        size += _tlv_size(SEQUENCE_NUMBER_TAG, FIXED_FIELD_LENGTH)
        size += sum(item.encoded_size for item in fields)
        size += varint.width(STOP_TAG)
        object.__setattr__(self, "_size", size)

    @classmethod
    def from_datetime(
        cls,
        when: datetime,
        sequence_number: int,
        fields: Iterable[Field] = (),
        *,
        since: datetime = EPOCH,
    ) -> "Header":
        """Build a header whose timestamp is *when* measured from *since*.

        Naive datetimes are taken to be UTC.
        """

        delta = _as_utc(when) - _as_utc(since)
        micros = (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds
        if micros < 0:
            raise HeaderValidationError("timestamp precedes the reference time")
        return cls(micros, sequence_number, tuple(fields))

    @property
    def captured_at(self) -> datetime:
        """The timestamp as an aware UTC datetime."""

        return EPOCH + timedelta(microseconds=self.timestamp)

    def get_field(self, field_id: int) -> Optional[Field]:
        for item in self.fields:
            if item.id == field_id:
                return item
        return None

    def get_fields(self, field_id: int) -> List[Field]:
        return [item for item in self.fields if item.id == field_id]

    def with_fields(self, *fields: Field) -> "Header":
        """Return a copy of this header with *fields* appended."""

        return replace(self, fields=self.fields + tuple(fields))

    def size(self) -> int:
        """Exact number of bytes :meth:`serialize` writes."""

        return self._size

    def serialize(self, buffer: WritableBuffer, offset: int = 0) -> int:
        """Write the header into *buffer* at *offset*.

        Raises :class:`BufferTooSmallError` carrying :meth:`size` before any
        byte is written when the buffer is too small.
        """

        writer = BufferWriter(buffer, offset)
        writer.ensure(self._size)
        return self.write_to(writer)

    def write_to(self, writer: BufferWriter) -> int:
        start = writer.position
        writer.write_varint(TIMESTAMP_TAG)
        writer.write_varint(FIXED_FIELD_LENGTH)
        writer.write_u64(self.timestamp)

        writer.write_varint(SEQUENCE_NUMBER_TAG)
        writer.write_varint(FIXED_FIELD_LENGTH)
        writer.write_u64(self.sequence_number)

        for item in self.fields:
            writer.write_varint(item.id)
            writer.write_varint(len(item.value))
            writer.write_bytes(item.value)

        writer.write_varint(STOP_TAG)
        return writer.position - start

    @classmethod
    def parse(
        cls,
        buffer: BufferLike,
        *,
        copy: bool = True,
        cfg: Optional[ParseCfg] = None,
    ) -> Tuple["Header", int]:
        """Parse a header from the start of *buffer*.

        Returns ``(header, consumed)`` where ``consumed`` includes the stop
        tag.  Custom field values are copied unless ``copy`` is false, in
        which case they are views over *buffer*.
        """

        reader = BufferReader(buffer, copy=copy)
        try:
            header = cls.read_from(reader, cfg=cfg)
        except FailedToParseError:
            reader.release(include_borrowed=True)
            raise
        finally:
            reader.release()
        return header, reader.position

    @classmethod
    def read_from(cls, reader: BufferReader, *, cfg: Optional[ParseCfg] = None) -> "Header":
        cfg = cfg or DEFAULT_PARSE_CFG
        timestamp: Optional[int] = None
        sequence_number: Optional[int] = None
        fields: List[Field] = []
        stopped = False

        try:
            while not reader.at_end():
                tag = reader.read_varint()
                if tag == STOP_TAG:
                    stopped = True
                    break
                length = reader.read_varint()

                if tag in (TIMESTAMP_TAG, SEQUENCE_NUMBER_TAG):
                    if length != FIXED_FIELD_LENGTH:
                        raise FailedToParseError(
                            f"tag {tag} declares {length} bytes, expected {FIXED_FIELD_LENGTH}"
                        )
                    value = reader.read_u64()
                    if tag == TIMESTAMP_TAG:
                        if timestamp is not None:
                            raise FailedToParseError("duplicate timestamp field")
                        timestamp = value
                    else:
                        if sequence_number is not None:
                            raise FailedToParseError("duplicate sequence number field")
                        sequence_number = value
                    continue

                if cfg.max_value_length is not None and length > cfg.max_value_length:
                    raise LimitExceededError(
                        f"field {tag} declares {length} bytes, limit is {cfg.max_value_length}"
                    )
                if cfg.max_fields is not None and len(fields) >= cfg.max_fields:
                    raise LimitExceededError(f"more than {cfg.max_fields} custom fields")
                fields.append(Field(tag, reader.read_bytes(length)))
        except (VarIntTruncatedError, BoundsError) as exc:
            raise FailedToParseError(f"truncated header: {exc}") from exc

        if not stopped:
            raise MissingFieldError("header is not terminated by a stop tag")
        if timestamp is None:
            raise MissingFieldError("header has no timestamp field")
        if sequence_number is None:
            raise MissingFieldError("header has no sequence number field")
        return cls(timestamp, sequence_number, tuple(fields))


class HeaderBuilder:
    """Collects custom fields before freezing them into a :class:`Header`."""

    def __init__(self, timestamp: int, sequence_number: int) -> None:
        self.timestamp = _check_u64("timestamp", timestamp)
        self.sequence_number = _check_u64("sequence_number", sequence_number)
        self._fields: List[Field] = []

    @classmethod
    def from_datetime(
        cls,
        when: datetime,
        sequence_number: int,
        *,
        since: datetime = EPOCH,
    ) -> "HeaderBuilder":
        header = Header.from_datetime(when, sequence_number, since=since)
        return cls(header.timestamp, header.sequence_number)

    def add_field(
        self,
        field_or_id: Union[Field, int],
        value: Optional[bytes] = None,
        *,
        shortname: str = "",
        description: str = "",
    ) -> "HeaderBuilder":
        if isinstance(field_or_id, Field):
            if value is not None:
                raise HeaderValidationError("pass either a Field or an id and value, not both")
            item = field_or_id
        else:
            if value is None:
                raise HeaderValidationError("a field value is required")
            item = Field(field_or_id, value, shortname=shortname, description=description)
        self._fields.append(item)
        return self

    def build(self) -> Header:
        return Header(self.timestamp, self.sequence_number, tuple(self._fields))
