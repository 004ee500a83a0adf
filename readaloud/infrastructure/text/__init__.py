"""Text utilities: paragraph chunking and truncation."""

from .chunker import (
    DEFAULT_MAX_CHARS,
    PARAGRAPH_SEPARATOR,
    TRUNCATION_MARKER,
    ParagraphChunker,
    chunk,
    split_paragraphs,
    truncate_text,
)

__all__ = [
    "DEFAULT_MAX_CHARS",
    "PARAGRAPH_SEPARATOR",
    "TRUNCATION_MARKER",
    "ParagraphChunker",
    "chunk",
    "split_paragraphs",
    "truncate_text",
]
