"""
===============================================================================
TARJETA CRC — error_mapping.py (ErrorEnvelope -> HTTP status)
===============================================================================

Responsabilidades:
  - Traducir el código del ErrorEnvelope a status HTTP.
  - Centralizar el mapeo para evitar duplicación en routers.
  - Mantener el dominio libre de HTTP.

Reglas:
  - BadRequest / EmptyInput / UnsupportedMode -> 400
  - ParseError del body entrante -> 400; ParseError de un backend -> 502
  - RateLimited -> 429 (+ Retry-After si hay retryAfterS)
  - ConfigError / InternalError -> 500
  - EmptyContent / UpstreamError -> 502

Colaboradores:
  - domain.errors (ErrorKind, ErrorEnvelope)
  - application.error_normalizer (ORIGIN_RELAY)
===============================================================================
"""

from __future__ import annotations

from readaloud.application.error_normalizer import ORIGIN_RELAY
from readaloud.domain.errors import ErrorEnvelope, ErrorKind

_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.EMPTY_INPUT: 400,
    ErrorKind.UNSUPPORTED_MODE: 400,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.CONFIG_ERROR: 500,
    ErrorKind.INTERNAL_ERROR: 500,
    ErrorKind.PARSE_ERROR: 502,
    ErrorKind.EMPTY_CONTENT: 502,
    ErrorKind.UPSTREAM_ERROR: 502,
}


def status_for(envelope: ErrorEnvelope) -> int:
    if envelope.code == ErrorKind.PARSE_ERROR and envelope.details.get("origin") == ORIGIN_RELAY:
        return 400
    return _STATUS_BY_KIND.get(envelope.code, 500)


def headers_for(envelope: ErrorEnvelope) -> dict[str, str]:
    retry_after = envelope.details.get("retryAfterS")
    if envelope.code == ErrorKind.RATE_LIMITED and isinstance(retry_after, int):
        return {"Retry-After": str(retry_after)}
    return {}
