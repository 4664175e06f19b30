"""LLM provider clients used by Tier 1 field extraction.

Clients are constructed explicitly and handed to the extractor, so tests can
substitute any object exposing an async ``generate_content`` method.
"""

import asyncio
from enum import Enum
from typing import Any, Dict, List, Optional, Union

import httpx
from google import genai
from google.genai import types

from auxos_worker.core.config import LLMSettings
from auxos_worker.core.exceptions import APIClientError, APITimeoutError
from auxos_worker.utils.logging import get_logger

LOGGER = get_logger(__name__)

Contents = Union[str, List[Union[str, Dict[str, Any]]]]

DEFAULT_OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    GEMINI = "gemini"
    OPENROUTER = "openrouter"


async def _backoff(attempt: int, base_delay: float) -> None:
    await asyncio.sleep(base_delay * (2 ** attempt))


def _flatten_contents(contents: Contents) -> str:
    """Join string and ``{"text": ...}`` parts into a single user message."""
    if isinstance(contents, str):
        return contents
    parts = []
    for part in contents:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and "text" in part:
            parts.append(part["text"])
    return "".join(parts)


class GeminiClient:
    """Wrapper for Google Gemini API client."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        timeout: int = 60,
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ):
        self.model = model
        self.max_retries = max_retries
        self.retry_delay = retry_delay

        try:
            self.client = genai.Client(
                api_key=api_key,
                http_options=types.HttpOptions(timeout=timeout * 1000),
            )
        except Exception as e:
            LOGGER.error(f"Failed to initialize Gemini client: {e}")
            raise APIClientError(f"Failed to initialize Gemini client: {e}", original_error=e)

        LOGGER.info(f"Initialized Gemini client with model {self.model}")

    @staticmethod
    def build_config(
        system_instruction: Optional[str], generation_config: Optional[Dict[str, Any]]
    ) -> types.GenerateContentConfig:
        options: Dict[str, Any] = {"temperature": 0.0}
        for key in ("temperature", "max_output_tokens", "response_mime_type"):
            if generation_config and key in generation_config:
                options[key] = generation_config[key]
        if system_instruction:
            options["system_instruction"] = system_instruction
        return types.GenerateContentConfig(**options)

    async def generate_content(
        self,
        contents: Contents,
        system_instruction: Optional[str] = None,
        generation_config: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Generate content using the Gemini model.

        Returns:
            Response text, "" when the model returned nothing

        Raises:
            APIClientError: If every attempt fails
        """
        config = self.build_config(system_instruction, generation_config)

        for attempt in range(self.max_retries):
            try:
                response = await self.client.aio.models.generate_content(
                    model=self.model,
                    contents=contents,
                    config=config,
                )
                return response.text or ""
            except Exception as e:
                LOGGER.warning(f"Gemini API error (Attempt {attempt + 1}/{self.max_retries}): {e}")
                if attempt == self.max_retries - 1:
                    raise APIClientError(f"Gemini generation failed: {e}", original_error=e)
                await _backoff(attempt, self.retry_delay)

        raise APIClientError("Gemini generation failed")


class OpenRouterClient:
    """OpenAI-compatible chat completions client (OpenRouter by default).

    Any OpenAI-compatible endpoint works by pointing ``base_url`` at its
    ``/chat/completions`` route.
    """

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: int = 60,
        max_retries: int = 3,
        retry_delay: float = 2.0,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url or DEFAULT_OPENROUTER_URL
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay

        LOGGER.info(f"Initialized OpenRouter client with model {self.model}")

    async def post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST a completion request, retrying 429, 5xx, timeouts and transport errors.

        Raises:
            APIClientError: On a non-retryable 4xx or when retries run out
            APITimeoutError: If the final attempt timed out
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for attempt in range(self.max_retries):
                last_attempt = attempt == self.max_retries - 1
                try:
                    response = await client.post(self.base_url, headers=headers, json=payload)
                    response.raise_for_status()
                    return response.json()
                except httpx.HTTPStatusError as e:
                    status_code = e.response.status_code
                    LOGGER.warning(
                        f"LLM API HTTP error (Attempt {attempt + 1}/{self.max_retries})",
                        extra={"status_code": status_code, "error_body": e.response.text[:500]},
                    )
                    if (400 <= status_code < 500 and status_code != 429) or last_attempt:
                        raise APIClientError(
                            f"LLM API error {status_code}: {e.response.text[:500]}", original_error=e
                        )
                except httpx.TimeoutException as e:
                    LOGGER.warning(f"LLM API timeout (Attempt {attempt + 1}/{self.max_retries})")
                    if last_attempt:
                        raise APITimeoutError(
                            f"LLM API timed out after {self.max_retries} attempts", original_error=e
                        )
                except httpx.HTTPError as e:
                    LOGGER.warning(f"LLM API transport error (Attempt {attempt + 1}/{self.max_retries}): {e}")
                    if last_attempt:
                        raise APIClientError(f"LLM API error: {e}", original_error=e)
                await _backoff(attempt, self.retry_delay)

        raise APIClientError(f"Failed to call LLM API after {self.max_retries} attempts")

    def build_payload(
        self,
        contents: Contents,
        system_instruction: Optional[str] = None,
        generation_config: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        messages = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        messages.append({"role": "user", "content": _flatten_contents(contents)})

        config = generation_config or {}
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": config.get("temperature", 0.0),
        }
        if "max_output_tokens" in config:
            payload["max_tokens"] = config["max_output_tokens"]
        if config.get("response_mime_type") == "application/json":
            payload["response_format"] = {"type": "json_object"}
        return payload

    async def generate_content(
        self,
        contents: Contents,
        system_instruction: Optional[str] = None,
        generation_config: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Generate content using the configured chat model.

        Raises:
            APIClientError: If the call fails or the response has no choices
        """
        response = await self.post(self.build_payload(contents, system_instruction, generation_config))

        choices = response.get("choices") or []
        if not choices:
            LOGGER.error(f"Unexpected chat completion response format: {response}")
            raise APIClientError("Invalid response format from LLM API")

        return choices[0].get("message", {}).get("content") or ""


def create_llm_client_from_settings(
    llm_settings: LLMSettings,
) -> Optional[Union[GeminiClient, OpenRouterClient]]:
    """Create the configured LLM client, or None when no API key is set.

    A missing key means Tier 1 is unavailable and extraction runs on the
    deterministic fallback only.

    Raises:
        ValueError: If the provider name is not supported
    """
    provider = LLMProvider(llm_settings.provider)

    if not llm_settings.api_key:
        LOGGER.warning(
            f"No API key configured for LLM provider '{provider.value}'; "
            "field extraction will use pattern matching only"
        )
        return None

    if provider == LLMProvider.GEMINI:
        return GeminiClient(
            api_key=llm_settings.gemini_api_key,
            model=llm_settings.gemini_model,
            timeout=llm_settings.request_timeout_seconds,
            max_retries=llm_settings.max_retries,
        )

    return OpenRouterClient(
        api_key=llm_settings.openrouter_api_key,
        model=llm_settings.openrouter_model,
        base_url=llm_settings.openrouter_api_url,
        timeout=llm_settings.request_timeout_seconds,
        max_retries=llm_settings.max_retries,
    )
