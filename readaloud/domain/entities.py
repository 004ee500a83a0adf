"""
===============================================================================
CRC CARD — domain/entities.py
===============================================================================

Module:
    Request-scoped value objects of the rewrite and speech pipelines

Responsibilities:
    - TextChunk: one ordered, 1-indexed slice of the input text.
    - GenerationRequest: one unit of work for the text-generation backend.
    - GenerationOutcome: tagged result of a backend call (success / failure).
    - OrchestrationResult: end-to-end outcome of one rewrite.
    - BackendReply: transport-level reply (status + raw body).
    - Speech types: SpeechRequest, SpeechAudio, Translation.

Rules:
    - Immutable (frozen dataclasses); created and dropped within one request.
    - No IO, no SDK types.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional, Union

from .errors import ErrorEnvelope, ErrorKind


class Mode(str, Enum):
    SIMPLIFY = "simplify"
    SUMMARIZE = "summarize"


@dataclass(frozen=True)
class TextChunk:
    """Paragraph-aligned slice of the input. index starts at 1."""

    content: str
    index: int

    @property
    def size_chars(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class GenerationRequest:
    """
    One call to the text-generation backend.

    request_id is shared by every chunk call of the same rewrite; attempt is
    set by the BackoffCaller on the copy it sends. mode/chunk_index/
    chunk_count only feed logs and metrics.
    """

    system_prompt: str
    user_content: str
    temperature: float
    max_output_tokens: int
    request_id: str
    attempt: int = 1
    mode: str = ""
    chunk_index: int = 1
    chunk_count: int = 1

    def for_attempt(self, attempt: int) -> "GenerationRequest":
        return replace(self, attempt=attempt)

    def to_messages(self) -> list[dict[str, str]]:
        """Role-tagged messages (chat-completions shape)."""
        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": self.user_content},
        ]


@dataclass(frozen=True)
class GenerationSuccess:
    text: str

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class GenerationFailure:
    """retryable is True only for rate limiting; it reports the cause."""

    kind: ErrorKind
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return False


GenerationOutcome = Union[GenerationSuccess, GenerationFailure]


@dataclass(frozen=True)
class OrchestrationSuccess:
    output_text: str
    mode: Mode
    request_id: str

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class OrchestrationFailure:
    """fallback_text is always the (possibly truncated) input."""

    error: ErrorEnvelope
    fallback_text: str
    mode: Optional[str]
    request_id: str

    @property
    def ok(self) -> bool:
        return False


OrchestrationResult = Union[OrchestrationSuccess, OrchestrationFailure]


@dataclass(frozen=True)
class BackendReply:
    """Raw reply of one backend call: HTTP status + undecoded body."""

    status_code: int
    body: str
    headers: dict[str, str] = field(default_factory=dict)


# -----------------------------------------------------------------------------
# Speech
# -----------------------------------------------------------------------------
class AudioFormat(str, Enum):
    MP3 = "audio/mp3"
    WAV = "audio/wav"


@dataclass(frozen=True)
class SpeechRequest:
    text: str
    language: str
    voice: Optional[str] = None
    audio_format: AudioFormat = AudioFormat.MP3
    request_id: str = ""
    translate_to: Optional[str] = None


@dataclass(frozen=True)
class SpeechAudio:
    audio_base64: str
    content_type: str
    voice: str
    language: str
    latency_ms: Optional[float] = None


@dataclass(frozen=True)
class Translation:
    text: str
    language: str
