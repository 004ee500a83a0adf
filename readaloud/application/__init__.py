"""
===============================================================================
APPLICATION LAYER (Public API / Exports)
===============================================================================

Servicios de aplicación compartidos:
  - error_normalizer: cualquier falla -> ErrorEnvelope; clasificador de 429
  - modes: Mode Strategy (instrucciones simplify / summarize)

Nota:
  - Los casos de uso se importan desde `usecases/`.
===============================================================================
"""

from .error_normalizer import is_rate_limited, normalize
from .modes import ModeInstructions, instructions_for, parse_mode

__all__ = [
    "ModeInstructions",
    "instructions_for",
    "is_rate_limited",
    "normalize",
    "parse_mode",
]
