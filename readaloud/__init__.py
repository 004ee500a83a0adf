"""Read-aloud relay: LLM rewrite + speech backend for the browser extension."""

__version__ = "0.1.0"
