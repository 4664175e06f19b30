"""Application configuration."""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from auxos_worker.utils.logging import get_logger

LOGGER = get_logger(__name__)

PACKAGE_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_EXTRACTION_CONFIG_PATH = PACKAGE_ROOT / "data" / "extraction-config.json"


def find_env_file() -> Optional[Path]:
    """Return the first .env found in the working directory or above the package."""
    candidates = [Path.cwd() / ".env", PACKAGE_ROOT / ".env", PACKAGE_ROOT.parent / ".env"]
    for path in candidates:
        if path.exists():
            LOGGER.info(f"Using .env file at: {path}")
            return path

    LOGGER.debug("No .env file found; using process environment only")
    return None


ENV_FILE = find_env_file()


def _settings_config() -> SettingsConfigDict:
    return SettingsConfigDict(
        env_file=str(ENV_FILE) if ENV_FILE else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="",  # No prefix for nested settings
    )


class ApiSettings(BaseSettings):
    """Persistence API connection settings."""
    url: str = Field(default="http://localhost:4000", validation_alias="API_URL")
    api_key: str = Field(default="", validation_alias="API_KEY")
    timeout_seconds: int = Field(default=30, validation_alias="API_TIMEOUT_SECONDS")

    model_config = _settings_config()


class StorageSettings(BaseSettings):
    """Object storage settings (Supabase storage REST API)."""
    url: str = Field(default="http://localhost:54321", validation_alias="STORAGE_URL")
    service_key: str = Field(default="", validation_alias="STORAGE_SERVICE_KEY")
    bucket: str = Field(default="documents", validation_alias="STORAGE_BUCKET")
    timeout_seconds: int = Field(default=120, validation_alias="STORAGE_TIMEOUT_SECONDS")

    model_config = _settings_config()


class LLMSettings(BaseSettings):
    """LLM provider settings for Tier 1 field extraction."""

    provider: str = Field(default="openrouter", validation_alias="LLM_PROVIDER")

    gemini_api_key: str = Field(default="", validation_alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-2.0-flash", validation_alias="GEMINI_MODEL")

    openrouter_api_key: str = Field(default="", validation_alias="OPENROUTER_API_KEY")
    openrouter_api_url: str = Field(default="https://openrouter.ai/api/v1/chat/completions", validation_alias="OPENROUTER_API_URL")
    openrouter_model: str = Field(default="openai/gpt-4o-mini", validation_alias="OPENROUTER_MODEL")

    # Inference call bounds, kept well under the document pipeline timeout
    inference_timeout_seconds: int = Field(default=120, validation_alias="LLM_INFERENCE_TIMEOUT_SECONDS")
    request_timeout_seconds: int = Field(default=60, validation_alias="LLM_REQUEST_TIMEOUT_SECONDS")
    max_retries: int = Field(default=2, validation_alias="LLM_MAX_RETRIES")

    # Prompt shaping
    max_text_chars: int = Field(default=8000, validation_alias="LLM_MAX_TEXT_CHARS")
    temperature: float = Field(default=0.3, validation_alias="LLM_TEMPERATURE")
    max_output_tokens: int = Field(default=2000, validation_alias="LLM_MAX_OUTPUT_TOKENS")

    model_config = _settings_config()

    @property
    def api_key(self) -> str:
        """API key of the selected provider."""
        if self.provider == "gemini":
            return self.gemini_api_key
        return self.openrouter_api_key

    @property
    def model(self) -> str:
        """Model of the selected provider."""
        if self.provider == "gemini":
            return self.gemini_model
        return self.openrouter_model


class TemporalSettings(BaseSettings):
    """Temporal connection and workflow settings."""
    host: str = Field(default="localhost", validation_alias="TEMPORAL_HOST")
    port: int = Field(default=7233, validation_alias="TEMPORAL_PORT")
    namespace: str = Field(default="default", validation_alias="TEMPORAL_NAMESPACE")
    task_queue: str = Field(default="agent-queue", validation_alias="TEMPORAL_TASK_QUEUE")

    model_config = _settings_config()

    @property
    def target_host(self) -> str:
        return f"{self.host}:{self.port}"


class ExtractionSettings(BaseSettings):
    """Where the declarative extraction schema is read from."""
    config_source: str = Field(default="file", validation_alias="EXTRACTION_CONFIG_SOURCE")
    config_path: Path = Field(default=DEFAULT_EXTRACTION_CONFIG_PATH, validation_alias="EXTRACTION_CONFIG_PATH")

    model_config = _settings_config()


class Settings(BaseSettings):
    """Unified application settings with nested models."""

    app_name: str = Field(default="Auxos Extraction Worker", validation_alias="APP_NAME")
    app_version: str = "0.1.0"
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    health_port: int = Field(default=8001, validation_alias="PORT")

    # Temporal connection retries on worker start
    connect_max_retries: int = 5
    connect_retry_delay: int = 5

    api: ApiSettings = Field(default_factory=lambda: ApiSettings())
    storage: StorageSettings = Field(default_factory=lambda: StorageSettings())
    llm: LLMSettings = Field(default_factory=lambda: LLMSettings())
    temporal: TemporalSettings = Field(default_factory=lambda: TemporalSettings())
    extraction: ExtractionSettings = Field(default_factory=lambda: ExtractionSettings())

    model_config = _settings_config()

    @property
    def api_url(self) -> str:
        return self.api.url

    @property
    def llm_provider(self) -> str:
        return self.llm.provider

    @property
    def temporal_task_queue(self) -> str:
        return self.temporal.task_queue


settings = Settings()

LOGGER.debug(
    f"Settings initialized with environment: {settings.environment}",
    extra={
        "llm_provider": settings.llm_provider,
        "llm_key_present": bool(settings.llm.api_key),
        "config_source": settings.extraction.config_source,
    },
)
