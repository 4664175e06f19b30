"""Tier 1: LLM field extraction.

One prompt per document carries the schema of every applicable field, keyed
by canonical field name, so the model answers in the persisted vocabulary.
Any failure (client error, timeout, unparseable answer) degrades to an empty
result and the caller falls through to the pattern tier.
"""

import asyncio
import json
import math
from typing import Any, Dict, List, Optional

from auxos_worker.prompts.extraction_prompts import (
    FIELD_EXTRACTION_SYSTEM_PROMPT,
    FIELD_EXTRACTION_USER_PROMPT,
)
from auxos_worker.schemas.extracted_field import ExtractedFieldData, MAX_EXTRACTED_TEXT_LENGTH
from auxos_worker.schemas.extraction_config import ExtractionConfig
from auxos_worker.services.field_name_mapper import authoring_names_for, to_canonical
from auxos_worker.utils.json_parser import parse_json_object
from auxos_worker.utils.logging import get_logger

LOGGER = get_logger(__name__)

MIN_LLM_CONFIDENCE = 0.5
DEFAULT_LLM_CONFIDENCE = 0.7
DEFAULT_REASONING = "Extracted from document"
DEFAULT_MAX_TEXT_CHARS = 8000


class LLMFieldExtractor:
    """Extracts configured fields with a single structured LLM call."""

    def __init__(
        self,
        client: Any,
        timeout_seconds: float = 120,
        max_text_chars: int = DEFAULT_MAX_TEXT_CHARS,
        temperature: float = 0.3,
        max_output_tokens: int = 2000,
    ):
        """
        Args:
            client: Object with an async ``generate_content(contents, system_instruction,
                generation_config)`` method returning the response text
            timeout_seconds: Bound on the whole inference call
            max_text_chars: Document prefix sent to the model
            temperature: Sampling temperature
            max_output_tokens: Response token cap
        """
        self.client = client
        self.timeout_seconds = timeout_seconds
        self.max_text_chars = max_text_chars
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    def build_field_schema(
        self, config: ExtractionConfig, document_type: Optional[str]
    ) -> Dict[str, Dict[str, Any]]:
        """Prompt schema for the applicable fields, keyed by canonical name."""
        schema: Dict[str, Dict[str, Any]] = {}
        for field_name, definition in config.fields_for_document_type(document_type):
            schema[to_canonical(field_name)] = {
                "label": definition.label,
                "description": definition.instructions,
                "keywords": definition.keywords,
                "mandatory": definition.mandatory,
                "originalFieldName": field_name,
            }
        return schema

    def build_system_prompt(self, field_schema: Dict[str, Dict[str, Any]], document_type: Optional[str]) -> str:
        return FIELD_EXTRACTION_SYSTEM_PROMPT.format(
            document_type=document_type or "Unknown",
            field_schema=json.dumps(field_schema, indent=2),
        )

    async def extract(
        self,
        text: str,
        config: ExtractionConfig,
        document_type: Optional[str],
    ) -> List[ExtractedFieldData]:
        field_schema = self.build_field_schema(config, document_type)
        if not field_schema:
            LOGGER.info("No fields apply to this document type; skipping LLM extraction")
            return []

        system_prompt = self.build_system_prompt(field_schema, document_type)
        user_prompt = FIELD_EXTRACTION_USER_PROMPT.format(document_text=text[:self.max_text_chars])

        try:
            response_text = await asyncio.wait_for(
                self.client.generate_content(
                    contents=user_prompt,
                    system_instruction=system_prompt,
                    generation_config={
                        "temperature": self.temperature,
                        "max_output_tokens": self.max_output_tokens,
                        "response_mime_type": "application/json",
                    },
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            LOGGER.warning(
                f"LLM extraction timed out after {self.timeout_seconds}s",
                extra={"document_type": document_type},
            )
            return []
        except Exception as e:
            LOGGER.error(f"Error in LLM extraction: {e}", exc_info=True)
            return []

        try:
            fields = self.parse_response(response_text, set(field_schema))
        except ValueError as e:
            LOGGER.error(f"Unusable LLM extraction response: {e}", exc_info=True)
            return []

        LOGGER.info(
            f"LLM extraction returned {len(fields)} fields",
            extra={"document_type": document_type, "requested_fields": len(field_schema)},
        )
        return fields

    def parse_response(self, response_text: Optional[str], requested: set) -> List[ExtractedFieldData]:
        """Turn the model's JSON answer into filtered ExtractedFieldData records."""
        result = parse_json_object(response_text)
        if result is None:
            LOGGER.warning("LLM response did not contain a JSON object")
            return []

        values = result.get("extractedFields")
        if not isinstance(values, dict):
            return []
        confidences = result.get("confidence") if isinstance(result.get("confidence"), dict) else {}
        reasonings = result.get("reasoning") if isinstance(result.get("reasoning"), dict) else {}

        extracted: List[ExtractedFieldData] = []
        for returned_name, raw_value in values.items():
            field_name = to_canonical(returned_name)
            if field_name not in requested:
                LOGGER.debug(f"Ignoring unrequested field from LLM: {returned_name}")
                continue

            value = _stringify(raw_value)
            if not value:
                continue

            confidence = _as_confidence(_lookup(confidences, returned_name, field_name, DEFAULT_LLM_CONFIDENCE))
            if confidence is None or confidence < MIN_LLM_CONFIDENCE:
                continue

            reasoning = str(_lookup(reasonings, returned_name, field_name, None) or DEFAULT_REASONING)
            extracted.append(
                ExtractedFieldData(
                    field_name=field_name,
                    field_value=value,
                    confidence=confidence,
                    source=f"LLM extraction: {reasoning}",
                    extracted_text=reasoning[:MAX_EXTRACTED_TEXT_LENGTH],
                )
            )

        return extracted


def _lookup(mapping: Dict[str, Any], returned_name: str, field_name: str, default: Any) -> Any:
    """Per-field side value, keyed by the name the model used or any alias of the field."""
    for key in (returned_name, field_name, *authoring_names_for(field_name)):
        if key in mapping:
            return mapping[key]
    return default


def _stringify(value: Any) -> str:
    """Values are persisted as strings; typing them is a downstream concern."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (list, dict, bool)):
        if not value and not isinstance(value, bool):
            return ""
        return json.dumps(value)
    return str(value)


def _as_confidence(value: Any) -> Optional[float]:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(confidence):
        return None
    return min(max(confidence, 0.0), 1.0)
