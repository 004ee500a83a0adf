"""readaloud.infrastructure.services.retry

Name: Backoff Caller (rate-limit retry with exponential delay)

Qué es
------
Envoltorio de resiliencia alrededor de un `TextGenerationBackend`.
Implementa:
  - Clasificación de la respuesta cruda (BackendReply) en un GenerationOutcome
  - Reintento SOLO ante rate limiting, con backoff exponencial (2 s, 4 s, ...)
  - Logging estructurado por intento (`llm_attempt`) y por espera (`llm_rate_limited`)

CRC (Component Card)
--------------------
Component: BackoffCaller
Responsibilities:
  - Enviar cada intento con su propio `attempt` (copia del request)
  - Decidir reintento vs fail-fast a partir del outcome
  - Dormir con un sleeper inyectable (asyncio.sleep en producción)
  - Registrar métricas por intento
Collaborators:
  - tenacity (AsyncRetrying: motor de retry)
  - application.error_normalizer.is_rate_limited (único clasificador de 429)
  - crosscutting.metrics / crosscutting.logger
Constraints:
  - Nunca lanza por fallas del backend: devuelve GenerationFailure
  - ConfigError, ParseError, UpstreamError y EmptyContent no se reintentan
  - Cancelación (asyncio.CancelledError) se propaga sin tocar
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Final, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from ...application.error_normalizer import is_rate_limited, provider_error
from ...crosscutting.exceptions import ConfigError
from ...crosscutting.logger import logger
from ...crosscutting.metrics import record_llm_attempt, record_llm_backoff
from ...crosscutting.timing import Timer
from ...domain.entities import (
    BackendReply,
    GenerationFailure,
    GenerationOutcome,
    GenerationRequest,
    GenerationSuccess,
)
from ...domain.errors import ErrorKind
from ...domain.services import Sleeper, TextGenerationBackend

DEFAULT_MAX_ATTEMPTS: Final[int] = 3
DEFAULT_BASE_DELAY_SECONDS: Final[float] = 2.0

OUTCOME_SUCCESS: Final[str] = "success"


def extract_content(payload: Any) -> Any:
    """R: choices[0].message.content (chat-completions shape), or None."""
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None
    return message.get("content")


def classify_reply(reply: BackendReply) -> GenerationOutcome:
    """R: BackendReply -> GenerationOutcome.

    Orden:
      1) rate limited (status o tag del proveedor) -> RateLimited, retryable
      2) body no-JSON -> ParseError
      3) status no-2xx -> UpstreamError
      4) content vacío / ausente / no-string -> EmptyContent
      5) content -> GenerationSuccess(content.strip())
    """
    parse_failed = False
    payload: Any = None
    try:
        payload = json.loads(reply.body)
    except json.JSONDecodeError:
        parse_failed = True

    details: dict[str, Any] = {"status": reply.status_code}

    if is_rate_limited(reply.status_code, payload):
        error = provider_error(payload)
        if error is not None:
            details["provider_error"] = dict(error)
        return GenerationFailure(
            kind=ErrorKind.RATE_LIMITED,
            message="Text-generation backend is rate limiting requests.",
            retryable=True,
            details=details,
        )

    if parse_failed:
        return GenerationFailure(
            kind=ErrorKind.PARSE_ERROR,
            message="Text-generation backend returned a non-JSON response.",
            details=details,
        )

    if not 200 <= reply.status_code < 300:
        error = provider_error(payload)
        if error is not None:
            details["provider_error"] = dict(error)
        return GenerationFailure(
            kind=ErrorKind.UPSTREAM_ERROR,
            message=f"Text-generation backend returned HTTP {reply.status_code}.",
            details=details,
        )

    content = extract_content(payload)
    if not isinstance(content, str) or not content.strip():
        return GenerationFailure(
            kind=ErrorKind.EMPTY_CONTENT,
            message="Text-generation backend returned no content.",
            details=details,
        )

    return GenerationSuccess(text=content.strip())


def _is_retryable(outcome: Optional[GenerationOutcome]) -> bool:
    return isinstance(outcome, GenerationFailure) and outcome.retryable


def _last_result(retry_state: RetryCallState) -> Optional[GenerationOutcome]:
    # R: al agotar intentos devolvemos el último outcome (sin RetryError).
    return retry_state.outcome.result() if retry_state.outcome else None


class BackoffCaller:
    """
    R: Backend call with bounded retries on rate limiting.

    Espera antes del intento n+1: base_delay * 2^(n-1).
    """

    def __init__(
        self,
        backend: TextGenerationBackend,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay_seconds: float = DEFAULT_BASE_DELAY_SECONDS,
        sleep: Optional[Sleeper] = None,
    ):
        if max_attempts <= 0:
            raise ValueError("max_attempts must be > 0")
        if base_delay_seconds < 0:
            raise ValueError("base_delay_seconds must be >= 0")

        self._backend = backend
        self.max_attempts = max_attempts
        self.base_delay_seconds = base_delay_seconds
        self._sleep: Sleeper = sleep or asyncio.sleep

    @property
    def backend_name(self) -> str:
        return getattr(self._backend, "name", type(self._backend).__name__)

    async def call(self, request: GenerationRequest) -> GenerationOutcome:
        outcome: Optional[GenerationOutcome] = None

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.base_delay_seconds, exp_base=2),
            retry=retry_if_result(_is_retryable),
            before_sleep=lambda state: self._log_backoff(request, state),
            retry_error_callback=_last_result,
            sleep=self._sleep,
        )

        async for attempt in retrying:
            with attempt:
                outcome = await self._attempt(
                    request.for_attempt(attempt.retry_state.attempt_number)
                )
            if not attempt.retry_state.outcome.failed:
                attempt.retry_state.set_result(outcome)

        assert outcome is not None
        return outcome

    async def _attempt(self, request: GenerationRequest) -> GenerationOutcome:
        status: Optional[int] = None
        timer = Timer().start()
        try:
            reply = await self._backend.send(request)
        except ConfigError as exc:
            outcome: GenerationOutcome = GenerationFailure(
                kind=ErrorKind.CONFIG_ERROR,
                message=exc.message,
                details={"backend": self.backend_name},
            )
        except httpx.HTTPError as exc:
            outcome = GenerationFailure(
                kind=ErrorKind.UPSTREAM_ERROR,
                message="Could not reach the text-generation backend.",
                details={"backend": self.backend_name, "error_type": type(exc).__name__},
            )
        else:
            status = reply.status_code
            outcome = classify_reply(reply)
        timer.stop()

        label = OUTCOME_SUCCESS if outcome.ok else outcome.kind.value
        record_llm_attempt(self.backend_name, label, timer.elapsed_seconds)

        log = logger.info if outcome.ok or _is_retryable(outcome) else logger.warning
        log(
            "llm_attempt",
            extra={
                "backend": self.backend_name,
                "attempt": request.attempt,
                "max_attempts": self.max_attempts,
                "elapsed_ms": timer.elapsed_ms,
                "outcome": label,
                "status": status,
                "relay_request_id": request.request_id,
                "mode": request.mode,
                "chunk_index": request.chunk_index,
                "chunk_count": request.chunk_count,
            },
        )
        return outcome

    def _log_backoff(self, request: GenerationRequest, retry_state: RetryCallState) -> None:
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        record_llm_backoff(self.backend_name)
        logger.warning(
            "llm_rate_limited",
            extra={
                "backend": self.backend_name,
                "attempt": retry_state.attempt_number,
                "retry_in_seconds": round(float(delay), 3),
                "relay_request_id": request.request_id,
                "chunk_index": request.chunk_index,
            },
        )
