"""
Name: Google Gemini Text-Generation Backend (Adapter)

Qué hace
--------
Implementación de `domain.services.TextGenerationBackend` usando Google GenAI.
  - Envía system prompt + contenido del usuario con temperature / max tokens
  - Re-codifica la respuesta en forma chat-completions
    ({"choices": [{"message": {"content": ...}}]}) para que el BackoffCaller
    clasifique igual que con Azure OpenAI
  - Traduce `google.genai.errors.APIError` a un BackendReply con su status
    (429 / RESOURCE_EXHAUSTED quedan visibles para el clasificador)

CRC (Class-Responsibility-Collaboration)
----------------------------------------
Class: GeminiBackend
Responsibilities:
  - Construir el cliente genai de forma lazy (sin key → ConfigError al llamar)
  - Mapear GenerationRequest → GenerateContentConfig
Collaborators:
  - google.genai.Client (SDK externo, API async `client.aio`)
  - infrastructure.services.retry.BackoffCaller
Constraints:
  - No reintenta: el retry vive en el BackoffCaller
  - Errores de red (httpx) se propagan tal cual
"""

from __future__ import annotations

import json
from typing import Any, Optional

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ....crosscutting.exceptions import ConfigError
from ....crosscutting.logger import logger
from ....domain.entities import BackendReply, GenerationRequest


class GeminiBackend:
    """R: Gemini adapter (default model gemini-1.5-flash)."""

    name = "gemini"
    DEFAULT_MODEL_ID = "gemini-1.5-flash"

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        client: Optional[genai.Client] = None,
        model_id: Optional[str] = None,
    ) -> None:
        self._api_key = (api_key or "").strip()
        self._client = client
        self._model_id = (model_id or self.DEFAULT_MODEL_ID).strip()

    @property
    def model_id(self) -> str:
        return self._model_id

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self._api_key:
                logger.error("GeminiBackend: GOOGLE_API_KEY not configured")
                raise ConfigError(
                    "GOOGLE_API_KEY not configured.",
                    details={"missing": ["GOOGLE_API_KEY"]},
                )
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def send(self, request: GenerationRequest) -> BackendReply:
        client = self._get_client()
        config = types.GenerateContentConfig(
            system_instruction=request.system_prompt,
            temperature=request.temperature,
            max_output_tokens=request.max_output_tokens,
        )

        try:
            response = await client.aio.models.generate_content(
                model=self._model_id,
                contents=request.user_content,
                config=config,
            )
        except genai_errors.APIError as exc:
            # R: APIError trae code HTTP + status (p.ej. RESOURCE_EXHAUSTED).
            status_code = exc.code if isinstance(exc.code, int) else 500
            return BackendReply(
                status_code=status_code,
                body=json.dumps(
                    {
                        "error": {
                            "code": exc.code,
                            "status": exc.status,
                            "message": exc.message,
                        }
                    }
                ),
            )

        return BackendReply(status_code=200, body=json.dumps(_as_chat_completion(response.text)))


def _as_chat_completion(text: Any) -> dict[str, Any]:
    return {"choices": [{"message": {"role": "assistant", "content": text}}]}
