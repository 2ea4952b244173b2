"""Decode limits applied while parsing untrusted containers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .exceptions import ConfigurationError

_LIMIT_KEYS = ("max_fields", "max_payloads", "max_value_length")


def _check_limit(name: str, value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigurationError(f"'{name}' must be a non-negative integer")
    return value


@dataclass(frozen=True)
class ParseCfg:
    """Upper bounds enforced by the parser.

    ``None`` disables a limit.  ``max_fields`` counts custom header fields,
    ``max_payloads`` counts payload frames and ``max_value_length`` caps the
    declared length of any single field value or payload.
    """

    max_fields: Optional[int] = None
    max_payloads: Optional[int] = None
    max_value_length: Optional[int] = None

    def __post_init__(self) -> None:
        for key in _LIMIT_KEYS:
            _check_limit(key, getattr(self, key))

    def to_dict(self) -> Dict[str, int]:
        return {key: getattr(self, key) for key in _LIMIT_KEYS if getattr(self, key) is not None}

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "ParseCfg":
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ConfigurationError("parse configuration must be a mapping")
        unknown = set(data) - set(_LIMIT_KEYS)
        if unknown:
            raise ConfigurationError(f"unknown parse limits: {', '.join(sorted(unknown))}")
        return cls(**{key: _check_limit(key, data.get(key)) for key in _LIMIT_KEYS})

    @property
    def unlimited(self) -> bool:
        return all(getattr(self, key) is None for key in _LIMIT_KEYS)


DEFAULT_PARSE_CFG = ParseCfg()
