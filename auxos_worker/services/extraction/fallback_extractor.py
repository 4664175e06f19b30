"""Tier 2: deterministic regex and keyword field extraction.

Used when no LLM is configured or the LLM tier returned nothing. For each
field the configured patterns are tried in order, then the keywords; the
first hit wins.
"""

import re
from typing import List, Optional, Tuple

from auxos_worker.schemas.extracted_field import ExtractedFieldData, MAX_EXTRACTED_TEXT_LENGTH
from auxos_worker.schemas.extraction_config import ExtractionConfig, FieldDefinition
from auxos_worker.services.field_name_mapper import to_canonical
from auxos_worker.utils.logging import get_logger

LOGGER = get_logger(__name__)

REGEX_CONFIDENCE = 0.9
KEYWORD_CONFIDENCE = 0.7

CONTEXT_WINDOW_CHARS = 300
KEYWORD_VALUE_MAX_CHARS = 100


def context_window(text: str, match: re.Match) -> str:
    """Document text from 300 chars before the match to 300 chars after it."""
    start = max(0, match.start() - CONTEXT_WINDOW_CHARS)
    end = min(len(text), match.end() + CONTEXT_WINDOW_CHARS)
    return text[start:end][:MAX_EXTRACTED_TEXT_LENGTH]


class FallbackFieldExtractor:
    """Pattern and keyword matching over the full document text."""

    def extract(
        self,
        text: str,
        config: ExtractionConfig,
        document_type: Optional[str],
    ) -> List[ExtractedFieldData]:
        extracted: List[ExtractedFieldData] = []

        for field_name, definition in config.fields_for_document_type(document_type):
            hit = self._match_patterns(text, field_name, definition)
            if hit is None:
                hit = self._match_keywords(text, definition)
            if hit is None:
                continue

            value, confidence, source, excerpt = hit
            extracted.append(
                ExtractedFieldData(
                    field_name=to_canonical(field_name),
                    field_value=value,
                    confidence=confidence,
                    source=source,
                    extracted_text=excerpt,
                )
            )

        LOGGER.info(
            f"Fallback extraction found {len(extracted)} fields",
            extra={"document_type": document_type, "fields_found": len(extracted)},
        )
        return extracted

    def _match_patterns(
        self, text: str, field_name: str, definition: FieldDefinition
    ) -> Optional[Tuple[str, float, str, str]]:
        for pattern in definition.patterns:
            try:
                regex = re.compile(pattern, re.IGNORECASE | re.MULTILINE)
            except re.error as e:
                LOGGER.error(f"Invalid regex pattern for {field_name}: {pattern} ({e})")
                continue

            if regex.groups < 1:
                LOGGER.warning(f"Pattern for {field_name} has no capture group: {pattern}")
                continue

            match = regex.search(text)
            if not match or not match.group(1):
                continue

            value = match.group(1).strip()
            if value:
                return value, REGEX_CONFIDENCE, f"regex: {pattern}", context_window(text, match)

        return None

    def _match_keywords(
        self, text: str, definition: FieldDefinition
    ) -> Optional[Tuple[str, float, str, str]]:
        for keyword in definition.keywords:
            if not keyword:
                continue
            regex = re.compile(
                rf"{re.escape(keyword)}[:\s]+([^\n]{{1,{KEYWORD_VALUE_MAX_CHARS}}})",
                re.IGNORECASE,
            )
            match = regex.search(text)
            if not match:
                continue

            value = match.group(1).strip()
            if value:
                return value, KEYWORD_CONFIDENCE, f"keyword: {keyword}", context_window(text, match)

        return None
