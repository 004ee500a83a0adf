"""
Name: Relay Configuration (Settings)

Responsibilities:
  - Centralized, typed configuration using pydantic-settings
  - Validate numeric limits at startup
  - Provide defaults that match the deployed relay (8000-char ceiling,
    4000-char chunks, 3 attempts, 2s base backoff)

Collaborators:
  - api/main.py: CORS origins, startup log
  - container.py: picks fake vs real adapters, wires limits
  - infrastructure adapters: endpoints, keys, timeouts

Constraints:
  - No business logic, pure configuration
  - Missing provider credentials do NOT fail startup; adapters raise
    ConfigError when they are actually called

Notes:
  - Singleton via lru_cache
  - Env var names are the upper-cased field names (AZURE_OPENAI_API_KEY, ...)
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LLM_PROVIDERS = {"azure_openai", "gemini"}


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_env: development/production/test
        log_level: Root level for the relay logger
        log_json: Emit JSON log lines (default: True)
        allowed_origins: Comma-separated CORS origins ("*" for extensions)
        llm_provider: azure_openai | gemini
        fake_llm: Use the deterministic fake backend (tests/dev)
        fake_speech: Use the deterministic fake speech service (tests/dev)
        llm_max_text_chars: Truncation ceiling before chunking (default: 8000)
        chunk_max_chars: Character budget per chunk (default: 4000)
        llm_max_attempts: Attempts per backend call on rate limiting (default: 3)
        llm_base_delay_seconds: First backoff delay (default: 2.0)
        llm_timeout_seconds: HTTP timeout per backend call
        llm_source_label: "source" field of successful /llm responses
        tts_max_text_chars: Maximum text accepted by /tts (default: 5000)
        default_language: Spoken language when none/invalid is given
    """

    # Environment
    app_env: str = "development"
    log_level: str = "INFO"
    log_json: bool = True

    # CORS (the extension calls from chrome-extension:// origins)
    allowed_origins: str = "*"

    # Text generation
    llm_provider: str = "azure_openai"
    fake_llm: bool = False
    llm_max_text_chars: int = 8000
    chunk_max_chars: int = 4000
    llm_max_attempts: int = 3
    llm_base_delay_seconds: float = 2.0
    llm_timeout_seconds: float = 30.0
    llm_source_label: str = "azure-openai-mini"

    # Azure OpenAI
    azure_openai_endpoint: str = ""
    azure_openai_api_key: str = ""
    azure_openai_deployment: str = ""
    azure_openai_api_version: str = "2024-02-15-preview"

    # Gemini
    google_api_key: str = ""
    gemini_model: str = "gemini-1.5-flash"

    # Speech
    fake_speech: bool = False
    tts_max_text_chars: int = 5000
    default_language: str = "en-US"
    azure_speech_key: str = ""
    azure_speech_region: str = ""
    azure_translator_key: str = ""
    azure_translator_region: str = ""
    speech_function_url: str = ""
    speech_shared_secret: str = ""
    speech_timeout_seconds: float = 30.0

    @field_validator(
        "llm_max_text_chars", "chunk_max_chars", "llm_max_attempts", "tts_max_text_chars"
    )
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("value must be greater than 0")
        return v

    @field_validator("llm_base_delay_seconds")
    @classmethod
    def delay_must_be_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("llm_base_delay_seconds must be >= 0")
        return v

    @field_validator("llm_provider")
    @classmethod
    def llm_provider_valid(cls, v: str) -> str:
        provider = (v or "azure_openai").strip().lower()
        if provider not in _LLM_PROVIDERS:
            raise ValueError("llm_provider must be azure_openai or gemini")
        return provider

    def get_allowed_origins_list(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [
            origin.strip()
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get singleton Settings instance.

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()
