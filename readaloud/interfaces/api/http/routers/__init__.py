from .llm import router as llm_router
from .tts import router as tts_router

__all__ = ["llm_router", "tts_router"]
