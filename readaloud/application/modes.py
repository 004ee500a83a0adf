"""
===============================================================================
MODE STRATEGY (simplify / summarize instruction templates)
===============================================================================

CRC CARD
-------------------------------------------------------------------------------
Component:
    ModeInstructions + instructions_for()

Responsibilities:
    - Hold the system prompt, per-call user templates and generation
      parameters for each rewrite mode.
    - Reject unknown modes with UnsupportedModeError.

Collaborators:
    - application.usecases.rewrite_text (Chunk Orchestrator)
    - domain.entities.Mode

Notes:
    - Templates use a single `{text}` placeholder; the reduction template of
      summarize receives the joined partial summaries as `{text}` too.
    - simplify has no reduction template: multi-chunk results are joined.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Optional

from ..crosscutting.exceptions import UnsupportedModeError
from ..domain.entities import Mode

DEFAULT_MODE: Final[Mode] = Mode.SIMPLIFY

SIMPLIFY_SYSTEM_PROMPT: Final[str] = (
    "You are an accessibility assistant. Rewrite the user's text so it is easy "
    "to understand for a high-school reader. Use short, clear sentences and "
    "plain vocabulary. Preserve the original meaning and important details. "
    "Avoid adding new opinions or facts that are not in the text."
)

SUMMARIZE_SYSTEM_PROMPT: Final[str] = (
    "You are an accessibility assistant. Summarize the user's text into a short "
    "list of bullet points. Use simple, clear language and focus on the most "
    "important ideas. Try to give 3–7 bullets total. Avoid adding new "
    "information that is not in the text."
)


@dataclass(frozen=True)
class ModeInstructions:
    mode: Mode
    system_prompt: str
    single_prompt: str
    chunk_prompt: str
    reduction_prompt: Optional[str]
    temperature: float
    max_output_tokens: int

    def render_single(self, text: str) -> str:
        return self.single_prompt.format(text=text)

    def render_chunk(self, text: str) -> str:
        return self.chunk_prompt.format(text=text)

    def render_reduction(self, combined: str) -> str:
        if self.reduction_prompt is None:
            raise ValueError(f"mode {self.mode.value} has no reduction template")
        return self.reduction_prompt.format(text=combined)

    @property
    def has_reduction_call(self) -> bool:
        return self.reduction_prompt is not None


_INSTRUCTIONS: Final[dict[Mode, ModeInstructions]] = {
    Mode.SIMPLIFY: ModeInstructions(
        mode=Mode.SIMPLIFY,
        system_prompt=SIMPLIFY_SYSTEM_PROMPT,
        single_prompt="Simplify the following text:\n\n{text}",
        chunk_prompt="Simplify the following text:\n\n{text}",
        reduction_prompt=None,
        temperature=0.25,
        max_output_tokens=400,
    ),
    Mode.SUMMARIZE: ModeInstructions(
        mode=Mode.SUMMARIZE,
        system_prompt=SUMMARIZE_SYSTEM_PROMPT,
        single_prompt="Summarize the following text into bullet points:\n\n{text}",
        chunk_prompt="Summarize the following section into bullet points:\n\n{text}",
        reduction_prompt=(
            "Here are bullet-point summaries from different sections of a long "
            "text:\n\n{text}\n\nPlease combine these into a single list of "
            "3–7 bullets, removing duplicates and keeping only the most "
            "important information."
        ),
        temperature=0.3,
        max_output_tokens=300,
    ),
}


def parse_mode(raw: object) -> Mode:
    """
    Caller-facing mode parsing: None/"" -> default, case-insensitive.

    Raises UnsupportedModeError for anything else.
    """
    if raw is None:
        return DEFAULT_MODE
    if not isinstance(raw, str):
        raise UnsupportedModeError(str(raw).lower())
    value = raw.strip().lower()
    if not value:
        return DEFAULT_MODE
    try:
        return Mode(value)
    except ValueError:
        raise UnsupportedModeError(value) from None


def instructions_for(mode: Mode | str) -> ModeInstructions:
    """Instruction set for a recognized mode (exact match on the mode value)."""
    try:
        key = mode if isinstance(mode, Mode) else Mode(mode)
    except ValueError:
        raise UnsupportedModeError(str(mode)) from None
    return _INSTRUCTIONS[key]
