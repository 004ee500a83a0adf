from .azure_speech import AzureSpeechService, build_ssml, resolve_voice
from .azure_translator import AzureTranslator
from .fake_speech import FakeSpeechService
from .signed_function import SignedFunctionSpeechService, sign

__all__ = [
    "AzureSpeechService",
    "AzureTranslator",
    "FakeSpeechService",
    "SignedFunctionSpeechService",
    "build_ssml",
    "resolve_voice",
    "sign",
]
