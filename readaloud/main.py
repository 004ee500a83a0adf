"""
ASGI entry point: `uvicorn readaloud.main:app`.
"""

from .api.main import app

__all__ = ["app"]
