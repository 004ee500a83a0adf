"""
===============================================================================
TARJETA CRC — readaloud/interfaces/api/http/routers/llm.py
===============================================================================

Name:
    LLM Relay Router (POST /llm)

Responsibilities:
    - Parsear el body a mano (JSON inválido -> ParseError / 400 con envelope,
      no el 422 por defecto de FastAPI).
    - Validar tipos (LlmReq) y delegar en RewriteTextUseCase.
    - Serializar éxito {success, requestId, mode, outputText, source} o
      falla {success:false, requestId, mode, error, fallbackText}.
    - Elegir status HTTP por código de error (error_mapping).

Collaborators:
    - application.usecases.RewriteTextUseCase
    - application.error_normalizer.normalize
    - schemas.llm
===============================================================================
"""

from __future__ import annotations

import json
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from readaloud.application.error_normalizer import ORIGIN_RELAY, normalize
from readaloud.application.usecases import RewriteTextInput, RewriteTextUseCase, new_request_id
from readaloud.container import get_rewrite_text_use_case
from readaloud.crosscutting.config import get_settings
from readaloud.domain.entities import OrchestrationFailure
from readaloud.domain.errors import ErrorEnvelope, ErrorKind

from ..error_mapping import headers_for, status_for
from ..schemas.common import ErrorBody
from ..schemas.llm import LlmFailureRes, LlmReq, LlmSuccessRes

router = APIRouter()


# =============================================================================
# Helpers
# =============================================================================


async def read_json_object(request: Request) -> tuple[Optional[dict[str, Any]], Optional[ErrorEnvelope]]:
    """Empty body -> {}; invalid JSON -> ParseError; non-object -> BadRequest."""
    raw = (await request.body()).decode("utf-8", errors="replace")
    if not raw.strip():
        return {}, None
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        return None, normalize(ORIGIN_RELAY, exc)
    if not isinstance(payload, dict):
        return None, ErrorEnvelope(
            code=ErrorKind.BAD_REQUEST,
            message="Request body must be a JSON object.",
            details={"origin": ORIGIN_RELAY},
        )
    return payload, None


def _failure_response(
    error: ErrorEnvelope, *, request_id: str, mode: Optional[str], fallback_text: str
) -> JSONResponse:
    body = LlmFailureRes(
        request_id=request_id,
        mode=mode,
        error=ErrorBody.from_envelope(error),
        fallback_text=fallback_text,
    )
    return JSONResponse(
        status_code=status_for(error),
        content=body.to_payload(),
        headers=headers_for(error),
    )


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/llm", tags=["llm"])
async def rewrite_text(
    request: Request,
    use_case: RewriteTextUseCase = Depends(get_rewrite_text_use_case),
) -> JSONResponse:
    payload, error = await read_json_object(request)
    if error is not None:
        return _failure_response(error, request_id=new_request_id(), mode=None, fallback_text="")

    try:
        body = LlmReq.model_validate(payload)
    except ValidationError as exc:
        raw_id = payload.get("requestId")
        return _failure_response(
            normalize(ORIGIN_RELAY, exc),
            request_id=raw_id if isinstance(raw_id, str) and raw_id else new_request_id(),
            mode=None,
            fallback_text="",
        )

    result = await use_case.execute(
        RewriteTextInput(text=body.text or "", mode=body.mode, request_id=body.request_id)
    )

    if isinstance(result, OrchestrationFailure):
        return _failure_response(
            result.error,
            request_id=result.request_id,
            mode=result.mode,
            fallback_text=result.fallback_text,
        )

    success = LlmSuccessRes(
        request_id=result.request_id,
        mode=result.mode.value,
        output_text=result.output_text,
        source=get_settings().llm_source_label,
    )
    return JSONResponse(status_code=200, content=success.to_payload())
