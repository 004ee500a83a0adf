"""
============================================================
TARJETA CRC — infrastructure/services/speech/azure_translator.py
============================================================
Class: AzureTranslator

Responsibilities:
  - Implementar TranslationService con Azure Translator v3.0.
  - ConfigError si faltan key / region.
  - Mapear 429 -> RateLimitedError, otros no-2xx -> UpstreamError.
  - Validar la forma de la respuesta (body[0].translations[0].text).

Collaborators:
  - domain.services.TranslationService
  - speech.errors.raise_for_upstream
  - httpx (HTTP client async)
============================================================
"""

from __future__ import annotations

from typing import Final, Optional

import httpx

from ....crosscutting.exceptions import ConfigError, UpstreamError
from ....crosscutting.logger import logger
from ....domain.entities import Translation
from .errors import json_or_none, post, raise_for_upstream

TRANSLATOR_URL: Final[str] = "https://api.cognitive.microsofttranslator.com/translate"
TRANSLATOR_API_VERSION: Final[str] = "3.0"

_SERVICE = "Azure Translator"


class AzureTranslator:
    def __init__(
        self,
        *,
        key: Optional[str],
        region: Optional[str],
        timeout_seconds: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
        url: str = TRANSLATOR_URL,
    ) -> None:
        self._key = (key or "").strip()
        self._region = (region or "").strip()
        self._timeout = timeout_seconds
        self._client = client
        self._url = url

    @property
    def is_configured(self) -> bool:
        return bool(self._key and self._region)

    async def translate(
        self, text: str, *, to_language: str, from_language: Optional[str] = None
    ) -> Translation:
        if not self.is_configured:
            raise ConfigError(
                "Translation requested but AZURE_TRANSLATOR_* env vars are missing.",
                details={"missing": ["AZURE_TRANSLATOR_KEY", "AZURE_TRANSLATOR_REGION"]},
            )

        params = {"api-version": TRANSLATOR_API_VERSION, "to": to_language}
        if from_language:
            params["from"] = from_language
        headers = {
            "Content-Type": "application/json",
            "Ocp-Apim-Subscription-Key": self._key,
            "Ocp-Apim-Subscription-Region": self._region,
        }
        body = [{"Text": text}]

        response = await post(
            self._url,
            service=_SERVICE,
            client=self._client,
            timeout=self._timeout,
            params=params,
            json=body,
            headers=headers,
        )

        raise_for_upstream(response, service=_SERVICE)

        payload = json_or_none(response)
        translated = None
        if isinstance(payload, list) and payload and isinstance(payload[0], dict):
            translations = payload[0].get("translations")
            if isinstance(translations, list) and translations and isinstance(translations[0], dict):
                translated = translations[0]

        if not translated or not translated.get("text"):
            raise UpstreamError(
                "Azure Translator response missing translated text.",
                details={"service": _SERVICE, "status": response.status_code},
            )

        logger.info(
            "translation_completed",
            extra={
                "from_language": from_language,
                "to_language": translated.get("to") or to_language,
                "chars": len(text),
            },
        )
        return Translation(text=translated["text"], language=translated.get("to") or to_language)
