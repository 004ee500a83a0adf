"""
===============================================================================
TARJETA CRC — readaloud/container.py (Composition Root / DI manual)
===============================================================================

Responsabilidades:
  - Componer backends, BackoffCaller, servicios de voz y casos de uso.
  - Exponer factories para FastAPI (Depends).
  - Mantener singletons con caching (lru_cache).
  - Elegir fake vs real según Settings (fake_llm, fake_speech, llm_provider,
    speech_function_url).

Colaboradores:
  - readaloud.crosscutting.config.get_settings
  - readaloud.infrastructure.services.* (implementaciones)
  - readaloud.application.usecases.* (casos de uso)

Notas:
  - Este archivo NO contiene lógica de negocio.
  - Este archivo NO depende de FastAPI (solo expone factories).
  - Credenciales faltantes no rompen la composición: aparecen como
    ConfigError al primer llamado.
===============================================================================
"""

from __future__ import annotations

from functools import lru_cache

from .application.usecases import ReadAloudUseCase, RewriteTextUseCase
from .crosscutting.config import get_settings
from .domain.services import SpeechService, TextGenerationBackend
from .infrastructure.services import (
    AzureOpenAIBackend,
    AzureSpeechService,
    AzureTranslator,
    BackoffCaller,
    FakeSpeechService,
    FakeTextBackend,
    GeminiBackend,
    SignedFunctionSpeechService,
)
from .infrastructure.text import ParagraphChunker

# =============================================================================
# Text generation
# =============================================================================


@lru_cache(maxsize=1)
def get_text_backend() -> TextGenerationBackend:
    """Backend de generación (fake en test/dev si está habilitado)."""
    settings = get_settings()
    if settings.fake_llm:
        return FakeTextBackend()
    if settings.llm_provider == "gemini":
        return GeminiBackend(settings.google_api_key, model_id=settings.gemini_model)
    return AzureOpenAIBackend(
        endpoint=settings.azure_openai_endpoint,
        api_key=settings.azure_openai_api_key,
        deployment=settings.azure_openai_deployment,
        api_version=settings.azure_openai_api_version,
        timeout_seconds=settings.llm_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_backoff_caller() -> BackoffCaller:
    settings = get_settings()
    return BackoffCaller(
        get_text_backend(),
        max_attempts=settings.llm_max_attempts,
        base_delay_seconds=settings.llm_base_delay_seconds,
    )


@lru_cache(maxsize=1)
def get_paragraph_chunker() -> ParagraphChunker:
    return ParagraphChunker(max_chars=get_settings().chunk_max_chars)


# =============================================================================
# Speech
# =============================================================================


@lru_cache(maxsize=1)
def get_speech_service() -> SpeechService:
    """
    Servicio de voz.

    Regla:
      - fake_speech => FakeSpeechService
      - speech_function_url configurada => reenvío firmado (HMAC)
      - si no => Azure Speech + Translator directos
    """
    settings = get_settings()
    if settings.fake_speech:
        return FakeSpeechService()
    if settings.speech_function_url:
        return SignedFunctionSpeechService(
            url=settings.speech_function_url,
            shared_secret=settings.speech_shared_secret,
            timeout_seconds=settings.speech_timeout_seconds,
        )
    return AzureSpeechService(
        key=settings.azure_speech_key,
        region=settings.azure_speech_region,
        translator=AzureTranslator(
            key=settings.azure_translator_key,
            region=settings.azure_translator_region,
            timeout_seconds=settings.speech_timeout_seconds,
        ),
        timeout_seconds=settings.speech_timeout_seconds,
    )


# =============================================================================
# Use cases
# =============================================================================


def get_rewrite_text_use_case() -> RewriteTextUseCase:
    return RewriteTextUseCase(
        caller=get_backoff_caller(),
        chunker=get_paragraph_chunker(),
        max_text_chars=get_settings().llm_max_text_chars,
    )


def get_read_aloud_use_case() -> ReadAloudUseCase:
    settings = get_settings()
    return ReadAloudUseCase(
        speech=get_speech_service(),
        rewriter=get_rewrite_text_use_case(),
        max_text_chars=settings.tts_max_text_chars,
        default_language=settings.default_language,
    )


def reset_container() -> None:
    """Limpia los singletons (tests / cambio de Settings)."""
    for factory in (
        get_text_backend,
        get_backoff_caller,
        get_paragraph_chunker,
        get_speech_service,
    ):
        factory.cache_clear()
