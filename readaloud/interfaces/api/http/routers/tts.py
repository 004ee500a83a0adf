"""
===============================================================================
TARJETA CRC — readaloud/interfaces/api/http/routers/tts.py
===============================================================================

Name:
    Text-to-speech Router (POST /tts)

Responsibilities:
    - Parsear el body (JSON inválido -> ParseError / 400).
    - Delegar en ReadAloudUseCase.
    - Serializar {success, requestId, audioBase64, audioContentType,
      language, voice, source, latencyMs} o el envelope de error.

Collaborators:
    - application.usecases.ReadAloudUseCase
    - schemas.tts
===============================================================================
"""

from __future__ import annotations

from uuid import uuid4

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from readaloud.application.error_normalizer import ORIGIN_RELAY, normalize
from readaloud.application.usecases import ReadAloudInput, ReadAloudUseCase
from readaloud.container import get_read_aloud_use_case
from readaloud.crosscutting.timing import Timer
from readaloud.domain.errors import ErrorEnvelope

from ..error_mapping import headers_for, status_for
from ..schemas.common import ErrorBody
from ..schemas.tts import TtsFailureRes, TtsReq, TtsSuccessRes
from .llm import read_json_object

router = APIRouter()


def _failure_response(error: ErrorEnvelope, *, request_id: str) -> JSONResponse:
    body = TtsFailureRes(request_id=request_id, error=ErrorBody.from_envelope(error))
    return JSONResponse(
        status_code=status_for(error),
        content=body.to_payload(),
        headers=headers_for(error),
    )


@router.post("/tts", tags=["tts"])
async def read_aloud(
    request: Request,
    use_case: ReadAloudUseCase = Depends(get_read_aloud_use_case),
) -> JSONResponse:
    timer = Timer().start()

    payload, error = await read_json_object(request)
    if error is not None:
        return _failure_response(error, request_id=uuid4().hex[:12])

    try:
        body = TtsReq.model_validate(payload)
    except ValidationError as exc:
        return _failure_response(normalize(ORIGIN_RELAY, exc), request_id=uuid4().hex[:12])

    result = await use_case.execute(
        ReadAloudInput(
            text=body.text,
            request_id=body.request_id,
            language=body.language,
            voice=body.voice,
            audio_format=body.format,
            translate_to=body.translation_target,
            simplify=body.simplify,
        )
    )

    if not result.ok:
        return _failure_response(result.error, request_id=result.request_id)

    audio = result.audio
    timer.stop()
    success = TtsSuccessRes(
        request_id=result.request_id,
        audio_base64=audio.audio_base64,
        audio_content_type=audio.content_type,
        language=audio.language,
        voice=audio.voice,
        latency_ms=audio.latency_ms if audio.latency_ms is not None else timer.elapsed_ms,
    )
    return JSONResponse(status_code=200, content=success.to_payload())
