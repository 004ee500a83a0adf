"""
Name: FastAPI Application Entry Point

Responsibilities:
  - Initialize FastAPI application with metadata (title, version)
  - Configure middleware (CORS, request context)
  - Mount the relay router (/llm, /tts)
  - Expose health check and metrics endpoints

Collaborators:
  - FastAPI: ASGI web framework
  - CORSMiddleware: browser extension calls (preflight)
  - RequestContextMiddleware: Request ID and logging context
  - interfaces.api.http.router: relay endpoints

Constraints:
  - CORS configurable via ALLOWED_ORIGINS env var (comma-separated, default "*")
  - No authentication (the extension calls the relay directly)
  - Health check does not call any provider (no quota spent)

Notes:
  - Middleware order matters: RequestContext -> CORS -> routes
  - /healthz follows Kubernetes health check convention
  - /metrics exposes Prometheus metrics
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..crosscutting.config import get_settings
from ..crosscutting.logger import logger
from ..crosscutting.metrics import get_metrics_response
from ..crosscutting.middleware import REQUEST_ID_HEADER, RequestContextMiddleware
from ..interfaces.api.http.router import router
from .exception_handlers import register_exception_handlers

HEALTH_SOURCE = "readaloud-relay"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle. Logs the effective relay configuration."""
    settings = get_settings()
    logger.info(
        "ReadAloud relay starting up",
        extra={
            "app_env": settings.app_env,
            "llm_provider": "fake" if settings.fake_llm else settings.llm_provider,
            "speech_service": (
                "fake"
                if settings.fake_speech
                else ("speech_function" if settings.speech_function_url else "azure_speech")
            ),
            "chunk_max_chars": settings.chunk_max_chars,
            "llm_max_text_chars": settings.llm_max_text_chars,
            "llm_max_attempts": settings.llm_max_attempts,
        },
    )
    yield
    logger.info("ReadAloud relay shutting down")


app = FastAPI(
    title="ReadAloud Relay",
    version=__version__,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "llm", "description": "Simplify / summarize page text"},
        {"name": "tts", "description": "Text to speech (optional translation)"},
    ],
)

# R: Middleware order (bottom = first to execute):
# 1. CORSMiddleware - handles preflight
# 2. RequestContextMiddleware - sets request_id
app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().get_allowed_origins_list(),
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", REQUEST_ID_HEADER],
    expose_headers=[REQUEST_ID_HEADER],
)

app.include_router(router)

register_exception_handlers(app)


# R: Health check endpoint (liveness; no provider calls)
@app.get("/healthz")
def healthz(request: Request):
    return {
        "status": "ok",
        "source": HEALTH_SOURCE,
        "ts": datetime.now(timezone.utc).isoformat(),
        "request_id": getattr(request.state, "request_id", None),
    }


# R: Prometheus metrics endpoint
@app.get("/metrics")
def metrics():
    body, content_type = get_metrics_response()
    return Response(content=body, media_type=content_type)
