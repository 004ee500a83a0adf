"""
HTTP helpers shared by the speech / translation adapters.

429 -> RateLimitedError (with retryAfterS), any other non-2xx or a transport
failure -> UpstreamError.
"""

from __future__ import annotations

from typing import Any, Final, Optional

import httpx

from ....crosscutting.exceptions import RateLimitedError, UpstreamError

DEFAULT_RETRY_AFTER_SECONDS: Final[int] = 5

# Upstream error bodies are echoed in details, clipped.
_MAX_BODY_EXCERPT: Final[int] = 300


def retry_after_seconds(response: httpx.Response, payload: Any = None) -> int:
    """Retry-After header, else payload.retryAfterS, else the default."""
    header = response.headers.get("Retry-After")
    if header and header.strip().isdigit():
        return int(header.strip())
    if isinstance(payload, dict) and isinstance(payload.get("retryAfterS"), (int, float)):
        return int(payload["retryAfterS"])
    return DEFAULT_RETRY_AFTER_SECONDS


def json_or_none(response: httpx.Response) -> Optional[Any]:
    try:
        return response.json()
    except ValueError:
        return None


def raise_for_upstream(response: httpx.Response, *, service: str) -> None:
    """Raise the matching relay error when `response` is not a success."""
    if response.is_success:
        return

    payload = json_or_none(response)
    if response.status_code == 429:
        raise RateLimitedError(
            f"{service} rate limited the request.",
            details={
                "service": service,
                "status": 429,
                "retryAfterS": retry_after_seconds(response, payload),
            },
        )

    message = f"{service} returned HTTP {response.status_code}."
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        upstream_message = payload["error"].get("message")
        if upstream_message:
            message = f"{service} error: {upstream_message}"

    raise UpstreamError(
        message,
        details={
            "service": service,
            "status": response.status_code,
            "body": response.text[:_MAX_BODY_EXCERPT],
        },
    )


async def post(
    url: str,
    *,
    service: str,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = 30.0,
    **kwargs: Any,
) -> httpx.Response:
    """POST through `client` (or a short-lived one); transport errors -> UpstreamError."""
    try:
        if client is not None:
            return await client.post(url, **kwargs)
        async with httpx.AsyncClient(timeout=timeout) as own_client:
            return await own_client.post(url, **kwargs)
    except httpx.HTTPError as exc:
        raise UpstreamError(
            f"Could not reach {service}.",
            details={"service": service, "error_type": type(exc).__name__},
        ) from exc
