from .llm_extractor import LLMFieldExtractor, MIN_LLM_CONFIDENCE
from .fallback_extractor import FallbackFieldExtractor, REGEX_CONFIDENCE, KEYWORD_CONFIDENCE
from .field_extraction_service import FieldExtractionService, FieldExtractionOutcome

__all__ = [
    "LLMFieldExtractor",
    "MIN_LLM_CONFIDENCE",
    "FallbackFieldExtractor",
    "REGEX_CONFIDENCE",
    "KEYWORD_CONFIDENCE",
    "FieldExtractionService",
    "FieldExtractionOutcome",
]
