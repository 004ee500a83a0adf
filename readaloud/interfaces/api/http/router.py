"""
===============================================================================
TARJETA CRC — router.py (Router raíz / Composición)
===============================================================================

Responsabilidades:
  - Definir el APIRouter raíz que se incluye en FastAPI (app.include_router).
  - Componer routers por feature (llm / tts).

Notas:
  - Sin prefijo de versión: la extensión llama a /llm y /tts directamente.
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter

from .routers.llm import router as llm_router
from .routers.tts import router as tts_router


def build_router() -> APIRouter:
    """Construye el router raíz (sin efectos colaterales al importar)."""
    api_router = APIRouter()
    api_router.include_router(llm_router)
    api_router.include_router(tts_router)
    return api_router


router = build_router()

__all__ = ["router", "build_router"]
