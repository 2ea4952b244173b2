"""Exception types for the LOC codec."""

from __future__ import annotations

from dataclasses import dataclass

from ..exceptions import MoqLocError


class LocError(MoqLocError):
    """Base class for codec related errors."""


@dataclass
class BufferTooSmallError(LocError):
    """Raised when a destination buffer cannot hold the encoded output.

    ``required`` is the exact number of bytes the operation needs, so callers
    can reallocate and retry.  Nothing has been written when this is raised.
    """

    required: int
    available: int = 0

    def __str__(self) -> str:  # pragma: no cover - human-friendly message
        return f"buffer too small: {self.required} bytes required, {self.available} available"


class HeaderValidationError(LocError, ValueError):
    """Raised when a header or field is built from invalid values."""


class VarIntError(LocError):
    """Base class for variable length integer failures."""


class VarIntOverflowError(VarIntError, ValueError):
    """Raised when a value cannot be represented as a varint."""


class VarIntTruncatedError(VarIntError):
    """Raised when a varint announces more bytes than the buffer holds."""


class BoundsError(LocError):
    """Raised when a read or write would cross the end of a buffer."""


class FailedToParseError(LocError):
    """Raised when encoded bytes do not form a valid container."""


class MissingFieldError(FailedToParseError):
    """Raised when a mandatory header field or the stop tag is absent."""


class TruncatedPayloadError(FailedToParseError):
    """Raised when a payload frame runs past the end of the buffer."""


class LimitExceededError(FailedToParseError):
    """Raised when decoded data exceeds the configured parse limits."""
