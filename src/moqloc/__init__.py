"""Low Overhead Media Container (LOC) codec."""

from .config import ParseCfg
from .exceptions import ConfigurationError, MoqLocError
from .loc import (
    BufferTooSmallError,
    Container,
    ContainerView,
    FailedToParseError,
    Field,
    Header,
    HeaderBuilder,
    LocError,
    parse,
    parse_view,
)

__all__ = [
    "BufferTooSmallError",
    "ConfigurationError",
    "Container",
    "ContainerView",
    "FailedToParseError",
    "Field",
    "Header",
    "HeaderBuilder",
    "LocError",
    "MoqLocError",
    "ParseCfg",
    "parse",
    "parse_view",
]
