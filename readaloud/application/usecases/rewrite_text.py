"""
===============================================================================
USE CASE: Rewrite Text (Chunk Orchestrator: simplify / summarize)
===============================================================================

Business Goal:
    Reescribir texto de página de largo arbitrario (simplificar o resumir)
    sin pasarse del presupuesto de contexto del modelo:
      1) Truncar el input una sola vez (marcador visible)
      2) Partir en chunks por párrafos
      3) Una llamada por chunk (secuencial, en orden), con backoff ante 429
      4) Recombinar: summarize hace una llamada extra de reducción;
         simplify concatena los parciales
      5) Cualquier falla -> ErrorEnvelope + fallback_text (el input)

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    RewriteTextUseCase

Responsibilities:
    - run(text, mode, request_id): orquestación chunk-wise.
    - execute(RewriteTextInput): borde del relay (request id, mode por
      defecto, truncado, texto vacío).
    - Cortar en la primera falla (los chunks siguientes no se llaman).
    - Loguear y normalizar errores inesperados a InternalError.

Collaborators:
    - GenerationCaller (BackoffCaller en producción)
    - ParagraphChunker
    - Mode Strategy (instructions_for / parse_mode)
    - Error Normalizer (normalize)

-------------------------------------------------------------------------------
INPUTS / OUTPUTS
-------------------------------------------------------------------------------
Inputs:
    RewriteTextInput:
      - text: str
      - mode: Optional[str] (default "simplify", case-insensitive)
      - request_id: Optional[str] (default server-generated-<hex>)

Outputs:
    OrchestrationResult:
      - OrchestrationSuccess(output_text, mode, request_id)
      - OrchestrationFailure(error, fallback_text, mode, request_id)

Error Mapping:
    - BadRequest: modo no soportado, texto vacío
    - EmptyInput: run() sin chunks
    - RateLimited / ParseError / EmptyContent / UpstreamError / ConfigError:
      tal cual los reporta el BackoffCaller
    - InternalError: excepción inesperada
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Optional
from uuid import uuid4

from ...context import bind_relay_request
from ...crosscutting.exceptions import UnsupportedModeError
from ...crosscutting.logger import logger
from ...crosscutting.metrics import observe_rewrite_chunks
from ...domain.entities import (
    GenerationFailure,
    GenerationOutcome,
    GenerationRequest,
    GenerationSuccess,
    Mode,
    OrchestrationFailure,
    OrchestrationResult,
    OrchestrationSuccess,
    TextChunk,
)
from ...domain.errors import ErrorEnvelope, ErrorKind
from ...domain.services import GenerationCaller
from ...infrastructure.text.chunker import PARAGRAPH_SEPARATOR, ParagraphChunker, truncate_text
from ..error_normalizer import (
    ORIGIN_BACKOFF_CALLER,
    ORIGIN_MODE_STRATEGY,
    ORIGIN_ORCHESTRATOR,
    ORIGIN_RELAY,
    normalize,
)
from ..modes import ModeInstructions, instructions_for, parse_mode

DEFAULT_MAX_TEXT_CHARS: Final[int] = 8000
REQUEST_ID_PREFIX: Final[str] = "server-generated-"

# chunk_index of the summarize reduction call (chunks are 1-based).
REDUCTION_CHUNK_INDEX: Final[int] = 0

_MSG_TEXT_REQUIRED: Final[str] = "Text is required and cannot be empty."
_MSG_NO_CHUNKS: Final[str] = "There is no text to process."


def new_request_id() -> str:
    return f"{REQUEST_ID_PREFIX}{uuid4().hex[:12]}"


@dataclass(frozen=True)
class RewriteTextInput:
    text: str
    mode: Optional[str] = None
    request_id: Optional[str] = None


class RewriteTextUseCase:
    """
    Use Case (Application Service / Orchestration):
        Chunk-wise rewrite with a single error envelope on failure.
    """

    def __init__(
        self,
        caller: GenerationCaller,
        chunker: Optional[ParagraphChunker] = None,
        *,
        max_text_chars: int = DEFAULT_MAX_TEXT_CHARS,
    ):
        if max_text_chars <= 0:
            raise ValueError("max_text_chars must be > 0")
        self._caller = caller
        self._chunker = chunker or ParagraphChunker()
        self._max_text_chars = max_text_chars

    async def execute(self, input_data: RewriteTextInput) -> OrchestrationResult:
        request_id = (input_data.request_id or "").strip() or new_request_id()
        text = truncate_text(input_data.text or "", self._max_text_chars)

        try:
            mode = parse_mode(input_data.mode)
        except UnsupportedModeError as exc:
            logger.info("rewrite_rejected", extra={"reason": "unsupported_mode", "mode": exc.mode})
            return OrchestrationFailure(
                error=normalize(ORIGIN_MODE_STRATEGY, exc),
                fallback_text=text,
                mode=exc.mode,
                request_id=request_id,
            )

        if not text.strip():
            return OrchestrationFailure(
                error=ErrorEnvelope(
                    code=ErrorKind.BAD_REQUEST,
                    message=_MSG_TEXT_REQUIRED,
                    details={"origin": ORIGIN_RELAY},
                ),
                fallback_text=text,
                mode=mode.value,
                request_id=request_id,
            )

        return await self.run(text, mode, request_id)

    async def run(self, text: str, mode: Mode | str, request_id: str) -> OrchestrationResult:
        try:
            instructions = instructions_for(mode)
        except UnsupportedModeError as exc:
            return OrchestrationFailure(
                error=normalize(ORIGIN_MODE_STRATEGY, exc),
                fallback_text=text,
                mode=exc.mode,
                request_id=request_id,
            )

        mode_value = instructions.mode.value
        bind_relay_request(relay_request_id=request_id, mode=mode_value)

        chunks = self._chunker.chunk(text)
        if not chunks:
            return OrchestrationFailure(
                error=ErrorEnvelope(
                    code=ErrorKind.EMPTY_INPUT,
                    message=_MSG_NO_CHUNKS,
                    details={"origin": ORIGIN_ORCHESTRATOR},
                ),
                fallback_text=text,
                mode=mode_value,
                request_id=request_id,
            )

        observe_rewrite_chunks(mode_value, len(chunks))
        logger.info(
            "rewrite_started",
            extra={"chunk_count": len(chunks), "text_chars": len(text)},
        )

        try:
            outcome = await self._rewrite(text, chunks, instructions, request_id)
        except Exception as exc:
            logger.exception(
                "rewrite_failed_unexpectedly",
                extra={"error_type": type(exc).__name__},
            )
            return OrchestrationFailure(
                error=normalize(ORIGIN_ORCHESTRATOR, exc),
                fallback_text=text,
                mode=mode_value,
                request_id=request_id,
            )

        if isinstance(outcome, GenerationFailure):
            error = normalize(ORIGIN_BACKOFF_CALLER, outcome)
            logger.warning(
                "rewrite_failed",
                extra={"error_code": error.code.value, "chunk_count": len(chunks)},
            )
            return OrchestrationFailure(
                error=error,
                fallback_text=text,
                mode=mode_value,
                request_id=request_id,
            )

        logger.info(
            "rewrite_completed",
            extra={"chunk_count": len(chunks), "output_chars": len(outcome.text)},
        )
        return OrchestrationSuccess(
            output_text=outcome.text, mode=instructions.mode, request_id=request_id
        )

    async def _rewrite(
        self,
        text: str,
        chunks: list[TextChunk],
        instructions: ModeInstructions,
        request_id: str,
    ) -> GenerationOutcome:
        total = len(chunks)

        if total == 1:
            return await self._caller.call(
                self._request(instructions, instructions.render_single(text), request_id)
            )

        partials: list[str] = []
        for chunk in chunks:
            outcome = await self._caller.call(
                self._request(
                    instructions,
                    instructions.render_chunk(chunk.content),
                    request_id,
                    chunk_index=chunk.index,
                    chunk_count=total,
                )
            )
            if isinstance(outcome, GenerationFailure):
                logger.warning(
                    "rewrite_chunk_failed",
                    extra={"chunk_index": chunk.index, "chunk_count": total},
                )
                return outcome
            partials.append(outcome.text)

        combined = PARAGRAPH_SEPARATOR.join(partials)
        if not instructions.has_reduction_call:
            return GenerationSuccess(text=combined)

        return await self._caller.call(
            self._request(
                instructions,
                instructions.render_reduction(combined),
                request_id,
                chunk_index=REDUCTION_CHUNK_INDEX,
                chunk_count=total,
            )
        )

    @staticmethod
    def _request(
        instructions: ModeInstructions,
        user_content: str,
        request_id: str,
        *,
        chunk_index: int = 1,
        chunk_count: int = 1,
    ) -> GenerationRequest:
        return GenerationRequest(
            system_prompt=instructions.system_prompt,
            user_content=user_content,
            temperature=instructions.temperature,
            max_output_tokens=instructions.max_output_tokens,
            request_id=request_id,
            mode=instructions.mode.value,
            chunk_index=chunk_index,
            chunk_count=chunk_count,
        )
