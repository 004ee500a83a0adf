"""
===============================================================================
MODULE: Typed relay exceptions (internal errors)
===============================================================================

Goal
----
Internal exceptions with:
- a stable error_code (an ErrorKind)
- an error_id for log correlation
- a human message that never carries secrets

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Component:
  ReadAloudError + subclasses

Responsibilities:
  - Standardize internal errors before the Error Normalizer maps them
  - Generate error_id for tracing

Collaborators:
  - application/error_normalizer.py
  - api/exception_handlers.py
===============================================================================
"""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from ..domain.errors import ErrorKind


class ReadAloudError(Exception):
    """Base for every error raised on purpose by the relay."""

    error_code: ErrorKind = ErrorKind.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        error_id: str | None = None,
    ):
        self.message = message
        self.details = dict(details or {})
        self.error_id = error_id or str(uuid4())
        super().__init__(message)


class UnsupportedModeError(ReadAloudError):
    """Mode outside simplify/summarize."""

    error_code = ErrorKind.UNSUPPORTED_MODE

    def __init__(self, mode: str):
        super().__init__(
            f'Invalid mode "{mode}". Expected "simplify" or "summarize".',
            details={"mode": mode},
        )
        self.mode = mode


class ConfigError(ReadAloudError):
    """Provider endpoint or credentials absent. Never retried."""

    error_code = ErrorKind.CONFIG_ERROR


class UpstreamError(ReadAloudError):
    """A provider answered with a non-success status or could not be reached."""

    error_code = ErrorKind.UPSTREAM_ERROR


class RateLimitedError(ReadAloudError):
    """A provider rate-limited the request (speech/translation path)."""

    error_code = ErrorKind.RATE_LIMITED
