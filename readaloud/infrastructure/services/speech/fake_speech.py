"""
Name: Fake Speech Service (Deterministic Test Double)

Sin IO ni credenciales: devuelve un "audio" estable derivado del texto, y
simula la traducción anteponiendo el idioma destino.
"""

from __future__ import annotations

import base64
import hashlib

from ....domain.entities import SpeechAudio, SpeechRequest
from .azure_speech import AUDIO_FORMATS, resolve_voice


class FakeSpeechService:
    name = "fake_speech"

    def __init__(self) -> None:
        self.requests: list[SpeechRequest] = []

    async def synthesize(self, request: SpeechRequest) -> SpeechAudio:
        self.requests.append(request)

        text, language = request.text, request.language
        if request.translate_to:
            text, language = f"[{request.translate_to}] {text}", request.translate_to

        digest = hashlib.sha256(f"{language}|{text}".encode("utf-8")).digest()[:16]
        return SpeechAudio(
            audio_base64=base64.b64encode(digest).decode("ascii"),
            content_type=AUDIO_FORMATS[request.audio_format].mime,
            voice=resolve_voice(language, request.voice),
            language=language,
            latency_ms=0.0,
        )
