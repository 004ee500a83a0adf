"""
Infrastructure Services (Facade/Barrel)

CRC (Component Card)
--------------------
Component: infrastructure.services
Responsibilities:
  - Publicar los adapters concretos (Azure OpenAI, Gemini, Azure Speech,
    Translator, speech function firmada) y sus fakes
  - Publicar el BackoffCaller (retry ante rate limiting)
Collaborators:
  - container.py (composition root)
"""

from .llm import AzureOpenAIBackend, FakeTextBackend, GeminiBackend
from .retry import BackoffCaller, classify_reply
from .speech import (
    AzureSpeechService,
    AzureTranslator,
    FakeSpeechService,
    SignedFunctionSpeechService,
)

__all__ = [
    "AzureOpenAIBackend",
    "AzureSpeechService",
    "AzureTranslator",
    "BackoffCaller",
    "FakeSpeechService",
    "FakeTextBackend",
    "GeminiBackend",
    "SignedFunctionSpeechService",
    "classify_reply",
]
