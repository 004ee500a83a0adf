"""
===============================================================================
ERROR NORMALIZER (failure -> ErrorEnvelope)
===============================================================================

Business Goal:
    Whatever fails (inbound JSON, validation, mode lookup, configuration,
    backend reply, unexpected bug), the caller receives one envelope shape
    with a stable code and a human message.

-------------------------------------------------------------------------------
CRC CARD (Module-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Component:
    error_normalizer (module)

Responsibilities:
    - normalize(origin, raw) -> ErrorEnvelope.
    - is_rate_limited(status_code, payload): the single rate-limit classifier.
      A new provider signal (header, new tag) is added here and nowhere else.
    - provider_error(payload): extract the provider's error object.

Collaborators:
    - domain.errors: ErrorKind, ErrorEnvelope
    - domain.entities.GenerationFailure
    - crosscutting.exceptions: ReadAloudError hierarchy
    - pydantic.ValidationError (inbound schema failures)

Mapping:
    ErrorEnvelope          -> unchanged
    GenerationFailure      -> its kind, verbatim
    json.JSONDecodeError   -> ParseError
    pydantic ValidationError -> BadRequest
    UnsupportedModeError   -> BadRequest
    ReadAloudError         -> its error_code (ConfigError, BadRequest, ...)
    anything else          -> InternalError (no internals in the message)
===============================================================================
"""

from __future__ import annotations

import json
from typing import Any, Final, Mapping, Optional

from pydantic import ValidationError

from ..crosscutting.exceptions import ReadAloudError, UnsupportedModeError
from ..domain.entities import GenerationFailure
from ..domain.errors import ErrorEnvelope, ErrorKind

# Origin tags (component that observed the failure).
ORIGIN_RELAY: Final[str] = "relay"
ORIGIN_MODE_STRATEGY: Final[str] = "mode_strategy"
ORIGIN_BACKOFF_CALLER: Final[str] = "backoff_caller"
ORIGIN_ORCHESTRATOR: Final[str] = "orchestrator"
ORIGIN_SPEECH: Final[str] = "speech"

RATE_LIMIT_STATUS: Final[int] = 429

# Provider-specific rate-limit tags found in error payloads:
#   Azure OpenAI: error.code; Gemini: error.status.
RATE_LIMIT_ERROR_TAGS: Final[frozenset[str]] = frozenset(
    {"RateLimitReached", "TooManyRequests", "RESOURCE_EXHAUSTED"}
)

_MSG_INVALID_JSON_BODY: Final[str] = "Request body must be valid JSON."
_MSG_INVALID_JSON_REPLY: Final[str] = "Failed to parse backend response as JSON."
_MSG_INTERNAL: Final[str] = "Unexpected error while processing the request."


def provider_error(payload: Any) -> Optional[Mapping[str, Any]]:
    """Return payload["error"] when the provider sent an error object."""
    if isinstance(payload, Mapping):
        error = payload.get("error")
        if isinstance(error, Mapping):
            return error
    return None


def is_rate_limited(status_code: int | None, payload: Any = None) -> bool:
    """True when the reply signals rate limiting (status 429 or provider tag)."""
    if status_code == RATE_LIMIT_STATUS:
        return True
    error = provider_error(payload)
    if error is None:
        return False
    return any(str(error.get(key)) in RATE_LIMIT_ERROR_TAGS for key in ("code", "status"))


def _validation_message(exc: ValidationError) -> tuple[str, list[dict[str, Any]]]:
    fields = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())),
            "msg": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    if not fields:
        return "Invalid request.", fields
    first = exc.errors()[0]
    name = fields[0]["field"] or "body"
    if first.get("type") == "missing":
        return f'Field "{name}" is required.', fields
    return f'Invalid field "{name}": {fields[0]["msg"]}', fields


def normalize(origin: str, raw: Any) -> ErrorEnvelope:
    """Map any failure observed by `origin` into an ErrorEnvelope."""
    if isinstance(raw, ErrorEnvelope):
        return raw

    details: dict[str, Any] = {"origin": origin}

    if isinstance(raw, GenerationFailure):
        return ErrorEnvelope(
            code=raw.kind, message=raw.message, details={**raw.details, **details}
        )

    if isinstance(raw, json.JSONDecodeError):
        message = _MSG_INVALID_JSON_BODY if origin == ORIGIN_RELAY else _MSG_INVALID_JSON_REPLY
        return ErrorEnvelope(
            code=ErrorKind.PARSE_ERROR,
            message=message,
            details={**details, "position": raw.pos},
        )

    if isinstance(raw, ValidationError):
        message, fields = _validation_message(raw)
        return ErrorEnvelope(
            code=ErrorKind.BAD_REQUEST,
            message=message,
            details={**details, "errors": fields},
        )

    if isinstance(raw, UnsupportedModeError):
        return ErrorEnvelope(
            code=ErrorKind.BAD_REQUEST,
            message=raw.message,
            details={**raw.details, **details},
        )

    if isinstance(raw, ReadAloudError):
        return ErrorEnvelope(
            code=raw.error_code,
            message=raw.message,
            details={**raw.details, **details, "error_id": raw.error_id},
        )

    return ErrorEnvelope(
        code=ErrorKind.INTERNAL_ERROR,
        message=_MSG_INTERNAL,
        details={**details, "error_type": type(raw).__name__},
    )
