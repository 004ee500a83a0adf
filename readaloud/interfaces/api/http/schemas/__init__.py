from .common import ErrorBody
from .llm import LlmFailureRes, LlmReq, LlmSuccessRes
from .tts import TtsFailureRes, TtsReq, TtsSuccessRes

__all__ = [
    "ErrorBody",
    "LlmFailureRes",
    "LlmReq",
    "LlmSuccessRes",
    "TtsFailureRes",
    "TtsReq",
    "TtsSuccessRes",
]
