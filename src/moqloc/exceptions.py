"""Custom exception hierarchy for the moqloc toolkit."""
from __future__ import annotations


class MoqLocError(Exception):
    """Base class for all moqloc errors."""


class ConfigurationError(MoqLocError):
    """Raised when user-supplied configuration is invalid."""


__all__ = [
    "ConfigurationError",
    "MoqLocError",
]
