"""
===============================================================================
CRC CARD — domain/services.py
===============================================================================

Module:
    External service ports (Protocols)

Responsibilities:
    - Contracts for the text-generation backend, translation and speech.
    - Keep application code independent from httpx / SDK details.

Collaborators:
    - infrastructure/services/*: concrete adapters.
    - application/usecases: consume these ports.

Rules:
    - Interfaces only.
===============================================================================
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional, Protocol

from .entities import BackendReply, GenerationRequest, SpeechAudio, SpeechRequest, Translation

# Coroutine used for backoff sleeps (asyncio.sleep in production).
Sleeper = Callable[[float], Awaitable[None]]


class TextGenerationBackend(Protocol):
    """Sends one GenerationRequest and returns the raw reply.

    Raises ConfigError when not configured and httpx.HTTPError on transport
    failures. Status codes are NOT interpreted here.
    """

    name: str

    async def send(self, request: GenerationRequest) -> BackendReply: ...


class GenerationCaller(Protocol):
    """Anything that turns a GenerationRequest into a GenerationOutcome."""

    async def call(self, request: GenerationRequest): ...


class TranslationService(Protocol):
    async def translate(
        self, text: str, *, to_language: str, from_language: Optional[str] = None
    ) -> Translation: ...


class SpeechService(Protocol):
    """Text (optionally translated) -> audio."""

    name: str

    async def synthesize(self, request: SpeechRequest) -> SpeechAudio: ...
