"""
Name: Fake Text-Generation Backend (Deterministic Test Double)

Qué es
------
Implementación determinista de `domain.services.TextGenerationBackend` para
tests, CI y desarrollo local sin credenciales. No hace IO.

CRC (Class-Responsibility-Collaboration)
----------------------------------------
Class: FakeTextBackend
Responsibilities:
  - Responder en forma chat-completions con salida estable
  - Registrar los requests recibidos (útil para asserts)
Collaborators:
  - domain.entities.GenerationRequest / BackendReply
Constraints:
  - Determinismo total: mismo request → misma salida
"""

from __future__ import annotations

import hashlib
import json

from ....crosscutting.logger import logger
from ....domain.entities import BackendReply, GenerationRequest

# R: largo máximo del extracto del texto de entrada incluido en la salida
_EXCERPT_CHARS = 160


def _excerpt(user_content: str) -> str:
    """R: Texto tras la instrucción ("...:\\n\\n<texto>"), recortado."""
    _, sep, rest = (user_content or "").partition("\n\n")
    body = (rest if sep else user_content).strip()
    first_line = body.splitlines()[0] if body else ""
    return first_line[:_EXCERPT_CHARS]


def build_output(request: GenerationRequest) -> str:
    digest = hashlib.sha256(
        f"{request.system_prompt}|{request.user_content}".encode("utf-8")
    ).hexdigest()[:12]
    excerpt = _excerpt(request.user_content)
    if request.mode == "summarize":
        return f"- Simulated summary ({digest}): {excerpt}"
    return f"Simulated rewrite ({digest}): {excerpt}"


class FakeTextBackend:
    name = "fake"

    def __init__(self) -> None:
        self.requests: list[GenerationRequest] = []
        logger.debug("FakeTextBackend initialized")

    async def send(self, request: GenerationRequest) -> BackendReply:
        self.requests.append(request)
        body = {
            "choices": [
                {"message": {"role": "assistant", "content": build_output(request)}}
            ]
        }
        return BackendReply(status_code=200, body=json.dumps(body))
