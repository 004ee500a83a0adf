"""
============================================================
TARJETA CRC — infrastructure/services/llm/azure_openai_backend.py
============================================================
Class: AzureOpenAIBackend

Responsibilities:
  - Implementar TextGenerationBackend contra Azure OpenAI chat completions.
  - Armar URL de deployment + api-version y el body {messages, temperature, max_tokens}.
  - Devolver la respuesta cruda (status + body) sin interpretarla.
  - ConfigError si faltan endpoint, key o deployment (se detecta al llamar,
    no al arrancar).

Collaborators:
  - domain.services.TextGenerationBackend (contrato)
  - infrastructure.services.retry.BackoffCaller (clasifica y reintenta)
  - httpx (HTTP client async)
============================================================
"""

from __future__ import annotations

from typing import Final, Optional

import httpx

from ....crosscutting.exceptions import ConfigError
from ....crosscutting.logger import logger
from ....domain.entities import BackendReply, GenerationRequest

DEFAULT_API_VERSION: Final[str] = "2024-02-15-preview"
DEFAULT_TIMEOUT_SECONDS: Final[float] = 30.0


class AzureOpenAIBackend:
    """
    Azure OpenAI chat-completions adapter.

    `client` is injectable (httpx.MockTransport in tests); without it a
    short-lived AsyncClient is opened per call.
    """

    name = "azure_openai"

    def __init__(
        self,
        *,
        endpoint: Optional[str],
        api_key: Optional[str],
        deployment: Optional[str],
        api_version: str = DEFAULT_API_VERSION,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._endpoint = (endpoint or "").strip().rstrip("/")
        self._api_key = (api_key or "").strip()
        self._deployment = (deployment or "").strip()
        self._api_version = api_version or DEFAULT_API_VERSION
        self._timeout = timeout_seconds
        self._client = client

    @property
    def missing_settings(self) -> list[str]:
        missing = []
        if not self._endpoint:
            missing.append("AZURE_OPENAI_ENDPOINT")
        if not self._api_key:
            missing.append("AZURE_OPENAI_API_KEY")
        if not self._deployment:
            missing.append("AZURE_OPENAI_DEPLOYMENT")
        return missing

    @property
    def chat_url(self) -> str:
        return (
            f"{self._endpoint}/openai/deployments/{self._deployment}"
            f"/chat/completions?api-version={self._api_version}"
        )

    def build_body(self, request: GenerationRequest) -> dict:
        return {
            "messages": request.to_messages(),
            "temperature": request.temperature,
            "max_tokens": request.max_output_tokens,
        }

    async def send(self, request: GenerationRequest) -> BackendReply:
        missing = self.missing_settings
        if missing:
            logger.error(
                "Azure OpenAI backend not configured", extra={"missing": missing}
            )
            raise ConfigError(
                "Azure OpenAI environment variables are not configured.",
                details={"missing": missing},
            )

        headers = {"Content-Type": "application/json", "api-key": self._api_key}
        body = self.build_body(request)

        if self._client is not None:
            response = await self._client.post(self.chat_url, json=body, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self.chat_url, json=body, headers=headers)

        return BackendReply(
            status_code=response.status_code,
            body=response.text,
            headers=dict(response.headers),
        )
