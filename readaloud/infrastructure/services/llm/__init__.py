from .azure_openai_backend import AzureOpenAIBackend
from .fake_backend import FakeTextBackend
from .gemini_backend import GeminiBackend

__all__ = ["AzureOpenAIBackend", "FakeTextBackend", "GeminiBackend"]
