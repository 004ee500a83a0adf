"""
Use Cases Layer (Business Operations)

    from readaloud.application.usecases import RewriteTextUseCase, ReadAloudUseCase
"""

from .read_aloud import ReadAloudInput, ReadAloudResult, ReadAloudUseCase
from .rewrite_text import RewriteTextInput, RewriteTextUseCase, new_request_id

__all__ = [
    "ReadAloudInput",
    "ReadAloudResult",
    "ReadAloudUseCase",
    "RewriteTextInput",
    "RewriteTextUseCase",
    "new_request_id",
]
