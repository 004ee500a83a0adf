"""
============================================================
TARJETA CRC — infrastructure/services/speech/signed_function.py
============================================================
Class: SignedFunctionSpeechService

Responsibilities:
  - Reenviar el pedido de voz a una speech function remota.
  - Firmar el body con HMAC-SHA256 sobre `ts + "\\n" + body`
    (headers X-Azure-Ts / X-Azure-Sig).
  - Interpretar la respuesta: audio (audioBase64 o audio.base64), mime,
    voz e idioma; 429 -> RateLimited, otro no-2xx -> UpstreamError.

Collaborators:
  - domain.services.SpeechService
  - speech.errors.raise_for_upstream
  - httpx (HTTP client async)

Notes:
  - La traducción (translateTo) la resuelve la función remota; el
    simplify ya se aplicó en el relay antes de reenviar.
============================================================
"""

from __future__ import annotations

import hashlib
import hmac
import json
from datetime import datetime, timezone
from typing import Any, Callable, Final, Optional

import httpx

from ....crosscutting.exceptions import ConfigError, UpstreamError
from ....crosscutting.logger import logger
from ....crosscutting.timing import Timer
from ....domain.entities import SpeechAudio, SpeechRequest
from .errors import json_or_none, post, raise_for_upstream

HEADER_TIMESTAMP: Final[str] = "X-Azure-Ts"
HEADER_SIGNATURE: Final[str] = "X-Azure-Sig"
CALLER_TAG: Final[str] = "aws"
DEFAULT_AUDIO_MIME: Final[str] = "audio/mpeg"

_SERVICE = "Speech function"


def sign(secret: str, ts: str, body: str) -> str:
    """Hex HMAC-SHA256 of `ts + "\\n" + body`."""
    return hmac.new(
        secret.encode("utf-8"), f"{ts}\n{body}".encode("utf-8"), hashlib.sha256
    ).hexdigest()


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class SignedFunctionSpeechService:
    name = "speech_function"

    def __init__(
        self,
        *,
        url: Optional[str],
        shared_secret: Optional[str],
        timeout_seconds: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], str] = _utc_timestamp,
    ) -> None:
        self._url = (url or "").strip()
        self._secret = shared_secret or ""
        self._timeout = timeout_seconds
        self._client = client
        self._clock = clock

    def build_payload(self, request: SpeechRequest) -> dict[str, Any]:
        return {
            "requestId": request.request_id,
            "text": request.text,
            "language": request.language,
            "voice": request.voice or "default",
            "format": request.audio_format.value,
            "translateTo": request.translate_to,
            "simplify": False,  # simplify runs in the relay before forwarding
            "caller": CALLER_TAG,
        }

    async def synthesize(self, request: SpeechRequest) -> SpeechAudio:
        if not self._url or not self._secret:
            raise ConfigError(
                "Speech function URL or shared secret not configured.",
                details={"missing": ["SPEECH_FUNCTION_URL", "SPEECH_SHARED_SECRET"]},
            )

        body = json.dumps(self.build_payload(request), separators=(",", ":"))
        ts = self._clock()
        headers = {
            "Content-Type": "application/json",
            HEADER_TIMESTAMP: ts,
            HEADER_SIGNATURE: sign(self._secret, ts, body),
        }

        timer = Timer().start()
        response = await post(
            self._url,
            service=_SERVICE,
            client=self._client,
            timeout=self._timeout,
            content=body,
            headers=headers,
        )
        timer.stop()

        raise_for_upstream(response, service=_SERVICE)

        payload = json_or_none(response)
        if not isinstance(payload, dict):
            raise UpstreamError(
                "Speech function returned a non-JSON response.",
                details={"service": _SERVICE, "status": response.status_code},
            )

        succeeded = payload.get("success", payload.get("status") == "ok")
        if not succeeded:
            error = payload.get("error") if isinstance(payload.get("error"), dict) else {}
            raise UpstreamError(
                error.get("message") or "Speech function reported a failure.",
                details={"service": _SERVICE, "upstream_code": error.get("code")},
            )

        audio = payload.get("audio") if isinstance(payload.get("audio"), dict) else {}
        meta = payload.get("meta") if isinstance(payload.get("meta"), dict) else {}
        audio_base64 = payload.get("audioBase64") or audio.get("base64")
        if not audio_base64:
            raise UpstreamError(
                "Speech function response missing audio payload.",
                details={"service": _SERVICE, "status": response.status_code},
            )

        latency = payload.get("latencyMs", meta.get("latencyMs"))
        logger.info(
            "speech_function_completed",
            extra={"status": response.status_code, "elapsed_ms": timer.elapsed_ms},
        )
        return SpeechAudio(
            audio_base64=audio_base64,
            content_type=payload.get("audioContentType") or audio.get("mime") or DEFAULT_AUDIO_MIME,
            voice=payload.get("voice") or meta.get("voice") or request.voice or "default",
            language=payload.get("language") or request.language,
            latency_ms=float(latency) if isinstance(latency, (int, float)) else timer.elapsed_ms,
        )
