"""
===============================================================================
CRC CARD — domain/errors.py
===============================================================================

Module:
    Error taxonomy + envelope

Responsibilities:
    - Define ErrorKind, the closed set of codes callers can branch on.
    - Define ErrorEnvelope, the one shape every failure takes before it
      crosses a component boundary.

Collaborators:
    - application.error_normalizer: builds envelopes.
    - interfaces.api.http: serializes envelopes into responses.

Rules:
    - Codes are categories, never messages.
    - details is diagnostic only; nothing may depend on it for correctness.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    BAD_REQUEST = "BadRequest"
    CONFIG_ERROR = "ConfigError"
    PARSE_ERROR = "ParseError"
    EMPTY_CONTENT = "EmptyContent"
    RATE_LIMITED = "RateLimited"
    UNSUPPORTED_MODE = "UnsupportedMode"
    INTERNAL_ERROR = "InternalError"
    EMPTY_INPUT = "EmptyInput"
    UPSTREAM_ERROR = "UpstreamError"


@dataclass(frozen=True)
class ErrorEnvelope:
    """
    Normalized failure.

    Fields:
      - code: ErrorKind
      - message: human readable, safe to show in the extension
      - details: optional diagnostic payload (status codes, origin, ...)
    """

    code: ErrorKind
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.details:
            payload["details"] = dict(self.details)
        return payload
