"""
===============================================================================
TARJETA CRC — readaloud/api/exception_handlers.py (Manejo Centralizado de Excepciones)
===============================================================================

Responsabilidades:
  - Traducir excepciones que escapan de los routers al envelope
    {success: false, requestId, error: {code, message, details?}}.
  - Centralizar logging de errores con request_id + error_id.
  - Evitar filtrar detalles internos en errores no controlados.

Patrones aplicados:
  - Exception Mapping (Presentation Layer).
  - Fail-safe: cualquier excepción no tipada -> InternalError (con logging).

Colaboradores:
  - application.error_normalizer.normalize
  - interfaces.api.http.error_mapping (status por código)
  - crosscutting.exceptions.ReadAloudError
===============================================================================
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..application.error_normalizer import ORIGIN_RELAY, normalize
from ..crosscutting.exceptions import ReadAloudError
from ..crosscutting.logger import logger
from ..domain.errors import ErrorEnvelope
from ..interfaces.api.http.error_mapping import headers_for, status_for


def _request_id_from(request: Request) -> str | None:
    return getattr(getattr(request, "state", None), "request_id", None)


def _envelope_response(request: Request, envelope: ErrorEnvelope) -> JSONResponse:
    return JSONResponse(
        status_code=status_for(envelope),
        content={
            "success": False,
            "requestId": _request_id_from(request),
            "error": envelope.to_dict(),
        },
        headers=headers_for(envelope),
    )


async def relay_error_handler(request: Request, exc: ReadAloudError) -> JSONResponse:
    envelope = normalize(ORIGIN_RELAY, exc)
    logger.error(
        "relay error",
        extra={
            "code": envelope.code.value,
            "error_id": exc.error_id,
            "error_message": exc.message,
        },
    )
    return _envelope_response(request, envelope)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handler para excepciones no tipadas.

    - Log completo (stacktrace).
    - Respuesta genérica InternalError.
    """
    logger.error(
        "unhandled exception",
        exc_info=True,
        extra={"error_type": type(exc).__name__},
    )
    return _envelope_response(request, normalize(ORIGIN_RELAY, exc))


def register_exception_handlers(app: FastAPI) -> None:
    """Exception genérica se registra al final como fallback."""
    app.add_exception_handler(ReadAloudError, relay_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = ["register_exception_handlers"]
