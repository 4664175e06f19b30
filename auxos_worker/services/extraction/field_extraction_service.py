"""Two-tier field extraction.

Tier 1 (LLM) runs first when a client is configured. Tier 2 (regex and
keyword matching) runs only when Tier 1 is unavailable or found nothing; the
two tiers are never merged.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from auxos_worker.core.config import LLMSettings
from auxos_worker.core.llm_client import create_llm_client_from_settings
from auxos_worker.schemas.extracted_field import ExtractedFieldData
from auxos_worker.schemas.extraction_config import ExtractionConfig
from auxos_worker.schemas.workflows import ExtractionMethod
from auxos_worker.services.extraction.fallback_extractor import FallbackFieldExtractor
from auxos_worker.services.extraction.llm_extractor import LLMFieldExtractor
from auxos_worker.utils.logging import get_logger

LOGGER = get_logger(__name__)


class FieldExtractionOutcome(BaseModel):
    """Extracted fields and the tier that produced them."""
    fields: List[ExtractedFieldData] = Field(default_factory=list)
    method: ExtractionMethod = ExtractionMethod.NONE


class FieldExtractionService:
    """Runs the LLM tier and falls back to pattern matching."""

    def __init__(
        self,
        llm_extractor: Optional[LLMFieldExtractor],
        fallback_extractor: Optional[FallbackFieldExtractor] = None,
    ):
        self.llm_extractor = llm_extractor
        self.fallback_extractor = fallback_extractor or FallbackFieldExtractor()

    @classmethod
    def from_settings(cls, llm_settings: LLMSettings) -> "FieldExtractionService":
        """Build the service with whichever LLM client the settings allow."""
        client = create_llm_client_from_settings(llm_settings)
        llm_extractor = None
        if client is not None:
            llm_extractor = LLMFieldExtractor(
                client,
                timeout_seconds=llm_settings.inference_timeout_seconds,
                max_text_chars=llm_settings.max_text_chars,
                temperature=llm_settings.temperature,
                max_output_tokens=llm_settings.max_output_tokens,
            )
        return cls(llm_extractor=llm_extractor)

    @property
    def llm_available(self) -> bool:
        return self.llm_extractor is not None

    async def extract(
        self,
        text: str,
        config: ExtractionConfig,
        document_type: Optional[str],
    ) -> FieldExtractionOutcome:
        if self.llm_extractor is not None:
            fields = await self.llm_extractor.extract(text, config, document_type)
            if fields:
                return FieldExtractionOutcome(fields=fields, method=ExtractionMethod.LLM)
            LOGGER.info(
                "LLM extraction found no fields, falling back to pattern matching",
                extra={"document_type": document_type},
            )
        else:
            LOGGER.info("No LLM client configured, using pattern matching")

        fields = self.fallback_extractor.extract(text, config, document_type)
        method = ExtractionMethod.FALLBACK if fields else ExtractionMethod.NONE
        LOGGER.info(
            f"Pattern matching extracted {len(fields)} fields",
            extra={"document_type": document_type, "method": method.value},
        )
        return FieldExtractionOutcome(fields=fields, method=method)
