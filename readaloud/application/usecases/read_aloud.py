"""
===============================================================================
USE CASE: Read Aloud (optional simplify -> optional translate -> speech)
===============================================================================

Business Goal:
    Convertir el texto de la página en audio que la extensión pueda
    reproducir, opcionalmente simplificado y/o traducido.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    ReadAloudUseCase

Responsibilities:
    - Validar texto (string no vacío, <= max chars).
    - Normalizar idioma (2-10 chars, si no el default), formato y destino
      de traducción ("" / "none" = sin traducir).
    - simplify=True: pasar por el Chunk Orchestrator en modo simplify; si
      falla, hablar el texto original (warning, no error).
    - Sintetizar con el SpeechService (Azure Speech directo o speech
      function firmada); la traducción vive dentro del servicio.
    - Mapear fallas del servicio a ErrorEnvelope (Error Normalizer).

Collaborators:
    - SpeechService
    - RewriteTextUseCase (opcional)
    - Error Normalizer, metrics, logger

-------------------------------------------------------------------------------
INPUTS / OUTPUTS
-------------------------------------------------------------------------------
Inputs:
    ReadAloudInput (campos crudos del body; la validación es acá)

Outputs:
    ReadAloudResult:
      - audio: SpeechAudio | None
      - error: ErrorEnvelope | None
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final, Optional
from uuid import uuid4

from ...crosscutting.exceptions import ReadAloudError
from ...crosscutting.logger import logger
from ...crosscutting.metrics import record_speech_request
from ...domain.entities import AudioFormat, Mode, SpeechAudio, SpeechRequest
from ...domain.errors import ErrorEnvelope, ErrorKind
from ...domain.services import SpeechService
from ..error_normalizer import ORIGIN_RELAY, ORIGIN_SPEECH, normalize
from .rewrite_text import RewriteTextUseCase

DEFAULT_MAX_TEXT_CHARS: Final[int] = 5000
DEFAULT_LANGUAGE: Final[str] = "en-US"

_LANGUAGE_MIN_CHARS: Final[int] = 2
_LANGUAGE_MAX_CHARS: Final[int] = 10
_NO_TRANSLATION: Final[str] = "none"

_MSG_TEXT_REQUIRED: Final[str] = 'Field "text" is required and must be a string.'


def is_valid_language(value: Any) -> bool:
    return isinstance(value, str) and _LANGUAGE_MIN_CHARS <= len(value) <= _LANGUAGE_MAX_CHARS


def parse_audio_format(value: Any) -> AudioFormat:
    return AudioFormat.WAV if value == AudioFormat.WAV.value else AudioFormat.MP3


def parse_translation_target(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    target = value.strip()
    if not target or target.lower() == _NO_TRANSLATION:
        return None
    return target


@dataclass(frozen=True)
class ReadAloudInput:
    text: Any
    request_id: Optional[str] = None
    language: Any = None
    voice: Optional[str] = None
    audio_format: Any = None
    translate_to: Any = None
    simplify: bool = False


@dataclass(frozen=True)
class ReadAloudResult:
    request_id: str
    audio: Optional[SpeechAudio] = None
    error: Optional[ErrorEnvelope] = None
    simplified: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and self.audio is not None


class ReadAloudUseCase:
    def __init__(
        self,
        speech: SpeechService,
        rewriter: Optional[RewriteTextUseCase] = None,
        *,
        max_text_chars: int = DEFAULT_MAX_TEXT_CHARS,
        default_language: str = DEFAULT_LANGUAGE,
    ):
        self._speech = speech
        self._rewriter = rewriter
        self._max_text_chars = max_text_chars
        self._default_language = default_language

    async def execute(self, input_data: ReadAloudInput) -> ReadAloudResult:
        request_id = (input_data.request_id or "").strip() or uuid4().hex[:12]
        text = input_data.text

        if not isinstance(text, str) or not text:
            return self._rejected(request_id, _MSG_TEXT_REQUIRED)
        if len(text) > self._max_text_chars:
            return self._rejected(
                request_id,
                f"Max {self._max_text_chars} chars",
                {"maxChars": self._max_text_chars, "textChars": len(text)},
            )

        language = (
            input_data.language
            if is_valid_language(input_data.language)
            else self._default_language
        )

        simplified = False
        if input_data.simplify and self._rewriter is not None:
            outcome = await self._rewriter.run(text, Mode.SIMPLIFY, request_id)
            if outcome.ok:
                text, simplified = outcome.output_text, True
            else:
                logger.warning(
                    "simplify_before_speech_failed",
                    extra={"error_code": outcome.error.code.value},
                )

        request = SpeechRequest(
            text=text,
            language=language,
            voice=input_data.voice or None,
            audio_format=parse_audio_format(input_data.audio_format),
            request_id=request_id,
            translate_to=parse_translation_target(input_data.translate_to),
        )

        logger.info(
            "tts_request_received",
            extra={
                "text_chars": len(text),
                "language": language,
                "target_language": request.translate_to,
                "format": request.audio_format.value,
                "speech_service": self._speech.name,
                "simplified": simplified,
            },
        )

        try:
            audio = await self._speech.synthesize(request)
        except ReadAloudError as exc:
            error = normalize(ORIGIN_SPEECH, exc)
            record_speech_request(self._speech.name, error.code.value)
            logger.warning(
                "tts_request_failed",
                extra={"error_code": error.code.value, "error_id": exc.error_id},
            )
            return ReadAloudResult(request_id=request_id, error=error, simplified=simplified)

        record_speech_request(self._speech.name, "success")
        return ReadAloudResult(request_id=request_id, audio=audio, simplified=simplified)

    @staticmethod
    def _rejected(
        request_id: str, message: str, details: Optional[dict[str, Any]] = None
    ) -> ReadAloudResult:
        return ReadAloudResult(
            request_id=request_id,
            error=ErrorEnvelope(
                code=ErrorKind.BAD_REQUEST,
                message=message,
                details={**(details or {}), "origin": ORIGIN_RELAY},
            ),
        )
