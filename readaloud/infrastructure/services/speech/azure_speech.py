"""
============================================================
TARJETA CRC — infrastructure/services/speech/azure_speech.py
============================================================
Class: AzureSpeechService

Responsibilities:
  - Implementar SpeechService con Azure Speech REST (SSML).
  - Traducir antes de sintetizar cuando el request lo pide (TranslationService).
  - Resolver voz (pedida > default del idioma > en-US-JennyNeural).
  - Mapear formato pedido -> X-Microsoft-OutputFormat + mime.
  - Escapar el texto dentro del SSML.

Collaborators:
  - domain.services.SpeechService / TranslationService
  - speech.errors.raise_for_upstream
  - httpx (HTTP client async)
============================================================
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Final, Optional
from xml.sax.saxutils import escape

import httpx

from ....crosscutting.exceptions import ConfigError, UpstreamError
from ....crosscutting.logger import logger
from ....crosscutting.timing import Timer
from ....domain.entities import AudioFormat, SpeechAudio, SpeechRequest
from ....domain.services import TranslationService
from .errors import post, raise_for_upstream

VOICE_FALLBACK: Final[str] = "en-US-JennyNeural"
VOICE_MAP: Final[dict[str, str]] = {
    "en-US": "en-US-JennyNeural",
    "es-ES": "es-ES-ElviraNeural",
    "fr-FR": "fr-FR-DeniseNeural",
    "zh-CN": "zh-CN-XiaoxiaoNeural",
    "ar-SA": "ar-SA-ZariyahNeural",
}

# "default" is what callers send when they have no preference.
_NO_VOICE_PREFERENCE: Final[frozenset[str]] = frozenset({"", "default"})

_XML_ATTR_ENTITIES: Final[dict[str, str]] = {'"': "&quot;", "'": "&apos;"}

_SERVICE = "Azure Speech"


@dataclass(frozen=True)
class OutputFormat:
    output_format: str
    mime: str


AUDIO_FORMATS: Final[dict[AudioFormat, OutputFormat]] = {
    AudioFormat.WAV: OutputFormat("riff-16khz-16bit-mono-pcm", "audio/wav"),
    AudioFormat.MP3: OutputFormat("audio-16khz-32kbitrate-mono-mp3", "audio/mpeg"),
}


def resolve_voice(language: Optional[str], requested: Optional[str] = None) -> str:
    if requested and requested.strip() not in _NO_VOICE_PREFERENCE:
        return requested.strip()
    if language and language in VOICE_MAP:
        return VOICE_MAP[language]
    return VOICE_FALLBACK


def escape_xml(text: str) -> str:
    return escape(text or "", _XML_ATTR_ENTITIES)


def build_ssml(text: str, *, language: str, voice: str) -> str:
    return (
        f'<speak version="1.0" xml:lang="{escape_xml(language)}">'
        f'<voice name="{escape_xml(voice)}">{escape_xml(text)}</voice>'
        "</speak>"
    )


class AzureSpeechService:
    name = "azure_speech"

    def __init__(
        self,
        *,
        key: Optional[str],
        region: Optional[str],
        translator: Optional[TranslationService] = None,
        timeout_seconds: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._key = (key or "").strip()
        self._region = (region or "").strip()
        self._translator = translator
        self._timeout = timeout_seconds
        self._client = client

    @property
    def endpoint(self) -> str:
        return f"https://{self._region}.tts.speech.microsoft.com/cognitiveservices/v1"

    async def synthesize(self, request: SpeechRequest) -> SpeechAudio:
        if not (self._key and self._region):
            raise ConfigError(
                "Missing AZURE_SPEECH_KEY or AZURE_SPEECH_REGION env vars.",
                details={"missing": ["AZURE_SPEECH_KEY", "AZURE_SPEECH_REGION"]},
            )

        timer = Timer().start()
        text, language = request.text, request.language

        if request.translate_to:
            if self._translator is None:
                raise ConfigError("Translation requested but no translator is configured.")
            translation = await self._translator.translate(
                text, to_language=request.translate_to, from_language=request.language
            )
            text, language = translation.text, translation.language

        voice = resolve_voice(language, request.voice)
        fmt = AUDIO_FORMATS.get(request.audio_format, AUDIO_FORMATS[AudioFormat.MP3])
        headers = {
            "Content-Type": "application/ssml+xml",
            "X-Microsoft-OutputFormat": fmt.output_format,
            "Ocp-Apim-Subscription-Key": self._key,
            "Ocp-Apim-Subscription-Region": self._region,
        }
        ssml = build_ssml(text, language=language, voice=voice)

        response = await post(
            self.endpoint,
            service=_SERVICE,
            client=self._client,
            timeout=self._timeout,
            content=ssml.encode("utf-8"),
            headers=headers,
        )

        raise_for_upstream(response, service=_SERVICE)

        if not response.content:
            raise UpstreamError(
                "Azure Speech response missing audio payload.",
                details={"service": _SERVICE, "status": response.status_code},
            )

        timer.stop()
        logger.info(
            "speech_synthesized",
            extra={
                "voice": voice,
                "language": language,
                "output_format": fmt.output_format,
                "audio_bytes": len(response.content),
                "elapsed_ms": timer.elapsed_ms,
            },
        )
        return SpeechAudio(
            audio_base64=base64.b64encode(response.content).decode("ascii"),
            content_type=fmt.mime,
            voice=voice,
            language=language,
            latency_ms=timer.elapsed_ms,
        )
