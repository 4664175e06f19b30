"""Extraction configuration providers.

The extraction schema is authored outside this worker (admin schema editor)
and read fresh on every workflow run. Providers only read; they hold no
mutable state, so one instance can serve concurrent activities.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Union

import httpx
from pydantic import ValidationError

from auxos_worker.core.config import ApiSettings, Settings
from auxos_worker.core.exceptions import (
    ConfigNotFoundError,
    ConfigParseError,
    ConfigUnavailableError,
    ConfigurationError,
)
from auxos_worker.schemas.extraction_config import ExtractionConfig
from auxos_worker.utils.logging import get_logger

LOGGER = get_logger(__name__)


def parse_extraction_config(raw: Union[str, bytes, Dict[str, Any]], origin: str) -> ExtractionConfig:
    """Validate raw JSON (text or already decoded) into an ExtractionConfig.

    Raises:
        ConfigParseError: If the JSON is invalid or violates the schema
    """
    try:
        data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
    except json.JSONDecodeError as e:
        raise ConfigParseError(f"Extraction config at {origin} is not valid JSON: {e}", original_error=e)

    if not isinstance(data, dict):
        raise ConfigParseError(f"Extraction config at {origin} must be a JSON object")

    try:
        return ExtractionConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigParseError(f"Extraction config at {origin} is malformed: {e}", original_error=e)


class ExtractionConfigProvider(ABC):
    """Source of the declarative extraction schema."""

    @abstractmethod
    async def load(self) -> ExtractionConfig:
        """Load the current extraction configuration.

        Raises:
            ConfigNotFoundError: The backing resource is missing
            ConfigParseError: The resource exists but is malformed
        """


class JsonFileConfigProvider(ExtractionConfigProvider):
    """Reads the schema from a JSON file on disk."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    async def load(self) -> ExtractionConfig:
        try:
            content = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
        except FileNotFoundError as e:
            raise ConfigNotFoundError(f"Extraction config not found: {self.path}", original_error=e)
        except OSError as e:
            raise ConfigUnavailableError(f"Could not read extraction config {self.path}: {e}", original_error=e)

        config = parse_extraction_config(content, str(self.path))
        LOGGER.debug(
            f"Loaded extraction config from {self.path}",
            extra={
                "document_types": len(config.document_types),
                "fields": len(config.field_extraction_instructions),
            },
        )
        return config


class ApiConfigProvider(ExtractionConfigProvider):
    """Fetches the schema from the persistence API (``GET /extraction-config``)."""

    def __init__(self, api_settings: ApiSettings):
        self.base_url = api_settings.url.rstrip("/")
        self.timeout = api_settings.timeout_seconds
        self.headers = {"x-api-key": api_settings.api_key} if api_settings.api_key else {}

    async def load(self) -> ExtractionConfig:
        url = f"{self.base_url}/extraction-config"
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(url, headers=self.headers, timeout=self.timeout)
        except httpx.HTTPError as e:
            raise ConfigUnavailableError(f"Could not fetch extraction config: {e}", original_error=e)

        if response.status_code == 404:
            raise ConfigNotFoundError(f"Extraction config not found at {url}")
        if response.status_code != 200:
            raise ConfigUnavailableError(
                f"Extraction config request failed with status {response.status_code}: {response.text}"
            )

        return parse_extraction_config(response.text, url)


def create_config_provider(app_settings: Settings) -> ExtractionConfigProvider:
    """Pick the provider named by EXTRACTION_CONFIG_SOURCE."""
    source = app_settings.extraction.config_source.lower()
    if source == "file":
        return JsonFileConfigProvider(app_settings.extraction.config_path)
    if source == "api":
        return ApiConfigProvider(app_settings.api)
    raise ConfigurationError(f"Unsupported EXTRACTION_CONFIG_SOURCE: {source}")
