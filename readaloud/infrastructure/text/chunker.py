"""
===============================================================================
CRC CARD — infrastructure/text/chunker.py
===============================================================================

Component:
  Paragraph chunker for LLM context budgets

Responsibilities:
  - Split page text into ordered chunks of at most `max_chars` characters.
  - Cut only on blank-line (paragraph) boundaries.
  - Truncate oversized input once, before chunking, with a visible marker.
  - Expose:
      * chunk(...) -> list[TextChunk]
      * truncate_text(...) -> str
      * ParagraphChunker (service wrapper with a fixed budget)

Collaborators:
  - domain.entities.TextChunk

Decisions:
  - A single paragraph longer than the budget becomes its own oversized
    chunk; we never cut inside a paragraph.
  - Pure functions: no IO, no logging.
===============================================================================
"""

from __future__ import annotations

import re
from typing import Final

from ...domain.entities import TextChunk

PARAGRAPH_SEPARATOR: Final[str] = "\n\n"
TRUNCATION_MARKER: Final[str] = "[Text truncated for length]"

# Blank line = newline, optional whitespace, newline.
_BLANK_LINE_RE: Final[re.Pattern[str]] = re.compile(r"\n\s*\n")

DEFAULT_MAX_CHARS: Final[int] = 4000


def split_paragraphs(text: str) -> list[str]:
    """Paragraphs in order, blank ones dropped."""
    return [p for p in _BLANK_LINE_RE.split(text or "") if p.strip()]


def chunk(text: str, max_chars: int = DEFAULT_MAX_CHARS) -> list[TextChunk]:
    """
    Group paragraphs into chunks bounded by `max_chars`.

    A paragraph is appended to the running buffer (joined with a blank line)
    unless that would exceed the budget; then the buffer is closed and the
    paragraph starts a new one.
    """
    if max_chars <= 0:
        raise ValueError(f"max_chars must be > 0. got={max_chars}")

    if not (text or "").strip():
        return []

    contents: list[str] = []
    current = ""

    for paragraph in split_paragraphs(text):
        candidate = f"{current}{PARAGRAPH_SEPARATOR}{paragraph}" if current else paragraph
        if current and len(candidate) > max_chars:
            contents.append(current)
            current = paragraph
        else:
            current = candidate

    if current:
        contents.append(current)

    return [TextChunk(content=c, index=i) for i, c in enumerate(contents, start=1)]


def truncate_text(text: str, max_chars: int) -> str:
    """Hard-truncate and append the marker when `text` exceeds `max_chars`."""
    if not text:
        return ""
    if len(text) <= max_chars:
        return text
    return f"{text[:max_chars]}{PARAGRAPH_SEPARATOR}{TRUNCATION_MARKER}"


class ParagraphChunker:
    """Service wrapper: chunker bound to one budget (injected by the container)."""

    def __init__(self, max_chars: int = DEFAULT_MAX_CHARS):
        if max_chars <= 0:
            raise ValueError("max_chars must be > 0")
        self.max_chars = max_chars

    def chunk(self, text: str) -> list[TextChunk]:
        return chunk(text, self.max_chars)
