"""
===============================================================================
TARJETA CRC — schemas/common.py
===============================================================================

Módulo:
    Forma del error en las respuestas HTTP

Responsabilidades:
    - ErrorBody: {code, message, details?}
    - Serialización camelCase (alias) para la extensión.
===============================================================================
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from readaloud.domain.errors import ErrorEnvelope


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ErrorBody(CamelModel):
    code: str
    message: str
    details: Optional[dict[str, Any]] = None

    @classmethod
    def from_envelope(cls, envelope: ErrorEnvelope) -> "ErrorBody":
        return cls(
            code=envelope.code.value,
            message=envelope.message,
            details=dict(envelope.details) or None,
        )
