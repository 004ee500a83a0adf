"""
Domain layer: value objects, error taxonomy and service ports.
No IO and no third-party SDKs live here.
"""

from .entities import (
    AudioFormat,
    BackendReply,
    GenerationFailure,
    GenerationOutcome,
    GenerationRequest,
    GenerationSuccess,
    Mode,
    OrchestrationFailure,
    OrchestrationResult,
    OrchestrationSuccess,
    SpeechAudio,
    SpeechRequest,
    TextChunk,
    Translation,
)
from .errors import ErrorEnvelope, ErrorKind
from .services import (
    GenerationCaller,
    Sleeper,
    SpeechService,
    TextGenerationBackend,
    TranslationService,
)

__all__ = [
    "AudioFormat",
    "BackendReply",
    "ErrorEnvelope",
    "ErrorKind",
    "GenerationCaller",
    "GenerationFailure",
    "GenerationOutcome",
    "GenerationRequest",
    "GenerationSuccess",
    "Mode",
    "OrchestrationFailure",
    "OrchestrationResult",
    "OrchestrationSuccess",
    "Sleeper",
    "SpeechAudio",
    "SpeechRequest",
    "SpeechService",
    "TextChunk",
    "TextGenerationBackend",
    "Translation",
    "TranslationService",
]
