"""Length-prefixed payload frames following the header.

Each payload is written as ``varint(len) bytes``.  On decode frames are read
until the buffer is exhausted.  A zero length prefix is an ordinary empty
payload.  A prefix announcing more bytes than remain, or a truncated prefix,
is a hard :class:`TruncatedPayloadError`; trailing bytes are never silently
dropped.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from ..config import DEFAULT_PARSE_CFG, ParseCfg
from . import varint
from .buffer import BufferReader, BufferWriter
from .errors import BoundsError, LimitExceededError, TruncatedPayloadError, VarIntTruncatedError
from .types import ByteChunk


def frame_size(payload: ByteChunk) -> int:
    return varint.width(len(payload)) + len(payload)


def payload_size(payloads: Iterable[ByteChunk]) -> int:
    """Total encoded size of *payloads*, length prefixes included."""

    return sum(frame_size(payload) for payload in payloads)


def write_payloads(writer: BufferWriter, payloads: Sequence[ByteChunk]) -> int:
    written = 0
    for payload in payloads:
        written += writer.write_varint(len(payload))
        written += writer.write_bytes(payload)
    return written


def read_payloads(reader: BufferReader, *, cfg: Optional[ParseCfg] = None) -> Tuple[ByteChunk, ...]:
    """Read payload frames until *reader* is exhausted."""

    cfg = cfg or DEFAULT_PARSE_CFG
    payloads: List[ByteChunk] = []
    while not reader.at_end():
        start = reader.position
        if cfg.max_payloads is not None and len(payloads) >= cfg.max_payloads:
            raise LimitExceededError(f"more than {cfg.max_payloads} payloads")
        try:
            length = reader.read_varint()
            if cfg.max_value_length is not None and length > cfg.max_value_length:
                raise LimitExceededError(
                    f"payload {len(payloads)} declares {length} bytes, limit is {cfg.max_value_length}"
                )
            payloads.append(reader.read_bytes(length))
        except (VarIntTruncatedError, BoundsError) as exc:
            raise TruncatedPayloadError(f"payload {len(payloads)} at offset {start} is truncated") from exc
    return tuple(payloads)
