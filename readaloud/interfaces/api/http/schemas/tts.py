"""
===============================================================================
TARJETA CRC — schemas/tts.py
===============================================================================

Módulo:
    Schemas HTTP para POST /tts

Responsabilidades:
    - Aceptar el body de la extensión tal cual (la validación de texto,
      idioma y formato vive en ReadAloudUseCase).
    - targetLanguage tiene precedencia sobre translateTo cuando viene.
===============================================================================
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import Field

from .common import CamelModel, ErrorBody

TTS_SOURCE = "azure-tts"


class TtsReq(CamelModel):
    request_id: Optional[str] = Field(default=None, alias="requestId")
    text: Any = None
    language: Any = None
    voice: Optional[str] = None
    format: Any = None
    translate_to: Any = Field(default=None, alias="translateTo")
    target_language: Any = Field(default=None, alias="targetLanguage")
    simplify: bool = False

    @property
    def translation_target(self) -> Any:
        if "target_language" in self.model_fields_set:
            return self.target_language
        return self.translate_to


class TtsSuccessRes(CamelModel):
    success: Literal[True] = True
    request_id: str = Field(..., alias="requestId")
    audio_base64: str = Field(..., alias="audioBase64")
    audio_content_type: str = Field(..., alias="audioContentType")
    language: str
    voice: str
    source: str = TTS_SOURCE
    latency_ms: float = Field(..., alias="latencyMs")


class TtsFailureRes(CamelModel):
    success: Literal[False] = False
    request_id: str = Field(..., alias="requestId")
    error: ErrorBody
