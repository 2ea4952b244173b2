"""Encoding and decoding of Low Overhead Media Containers."""

from .errors import (
    BoundsError,
    BufferTooSmallError,
    FailedToParseError,
    HeaderValidationError,
    LimitExceededError,
    LocError,
    MissingFieldError,
    TruncatedPayloadError,
    VarIntError,
    VarIntOverflowError,
    VarIntTruncatedError,
)
from .header import (
    SEQUENCE_NUMBER_TAG,
    STOP_TAG,
    TIMESTAMP_TAG,
    Field,
    Header,
    HeaderBuilder,
)
from .payload import payload_size
from .container import Container, ContainerView, parse, parse_view

__all__ = [
    "BoundsError",
    "BufferTooSmallError",
    "FailedToParseError",
    "HeaderValidationError",
    "LimitExceededError",
    "LocError",
    "MissingFieldError",
    "TruncatedPayloadError",
    "VarIntError",
    "VarIntOverflowError",
    "VarIntTruncatedError",
    "SEQUENCE_NUMBER_TAG",
    "STOP_TAG",
    "TIMESTAMP_TAG",
    "Field",
    "Header",
    "HeaderBuilder",
    "payload_size",
    "Container",
    "ContainerView",
    "parse",
    "parse_view",
]
