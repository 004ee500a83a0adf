"""
===============================================================================
TARJETA CRC — schemas/llm.py
===============================================================================

Módulo:
    Schemas HTTP para POST /llm (simplify / summarize)

Responsabilidades:
    - Validar tipos del body (text / mode / requestId son strings si vienen).
    - DTOs de respuesta de éxito y de falla (con fallbackText).

Notas:
    - Texto vacío, modo inválido y truncado se resuelven en el caso de uso,
      no acá: el schema solo valida tipos.
===============================================================================
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field, StrictStr

from .common import CamelModel, ErrorBody


class LlmReq(CamelModel):
    mode: Optional[StrictStr] = None
    text: Optional[StrictStr] = None
    request_id: Optional[StrictStr] = Field(default=None, alias="requestId")


class LlmSuccessRes(CamelModel):
    success: Literal[True] = True
    request_id: str = Field(..., alias="requestId")
    mode: str
    output_text: str = Field(..., alias="outputText")
    source: str


class LlmFailureRes(CamelModel):
    success: Literal[False] = False
    request_id: str = Field(..., alias="requestId")
    mode: Optional[str] = None
    error: ErrorBody
    fallback_text: str = Field(..., alias="fallbackText")
