"""
===============================================================================
CRC CARD — readaloud/context.py (request-scoped context)
===============================================================================

Responsibilities:
  - Hold per-request correlation data in ContextVars (async-safe).
  - Let the JSON logger enrich every record without threading ids through
    every call signature.
  - Provide small helpers: set_request_context(), bind_relay_request(),
    get_context_dict(), clear_context().

Collaborators:
  - crosscutting.middleware: sets request_id/method/path per HTTP request.
  - crosscutting.logger: reads get_context_dict() on every record.
  - application.usecases: binds the caller-supplied requestId and mode.

Constraints:
  - Strings only; "" means "not available".
===============================================================================
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import Final

# Transport-level id (X-Request-Id header or generated by the middleware).
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Id supplied by the extension in the JSON body ("requestId"). It correlates
# every chunk call of one logical rewrite.
relay_request_id_var: ContextVar[str] = ContextVar("relay_request_id", default="")
mode_var: ContextVar[str] = ContextVar("mode", default="")

http_method_var: ContextVar[str] = ContextVar("http_method", default="")
http_path_var: ContextVar[str] = ContextVar("http_path", default="")

_CTX_REQUEST_ID: Final[str] = "request_id"
_CTX_RELAY_REQUEST_ID: Final[str] = "relay_request_id"
_CTX_MODE: Final[str] = "mode"
_CTX_METHOD: Final[str] = "method"
_CTX_PATH: Final[str] = "path"


def set_request_context(
    *, request_id: str = "", method: str = "", path: str = ""
) -> None:
    """Set the transport context of the current request."""
    request_id_var.set(request_id or "")
    http_method_var.set(method or "")
    http_path_var.set(path or "")


def bind_relay_request(*, relay_request_id: str = "", mode: str = "") -> None:
    """Bind the extension's requestId and the selected mode."""
    relay_request_id_var.set(relay_request_id or "")
    mode_var.set(mode or "")


def get_context_dict() -> dict[str, str]:
    """Current context as a dict, skipping empty values."""
    ctx: dict[str, str] = {}

    if val := request_id_var.get():
        ctx[_CTX_REQUEST_ID] = val
    if val := relay_request_id_var.get():
        ctx[_CTX_RELAY_REQUEST_ID] = val
    if val := mode_var.get():
        ctx[_CTX_MODE] = val
    if val := http_method_var.get():
        ctx[_CTX_METHOD] = val
    if val := http_path_var.get():
        ctx[_CTX_PATH] = val

    return ctx


def clear_context() -> None:
    """Reset every var at the end of a request."""
    request_id_var.set("")
    relay_request_id_var.set("")
    mode_var.set("")
    http_method_var.set("")
    http_path_var.set("")
