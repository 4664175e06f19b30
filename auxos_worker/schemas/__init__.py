from .extraction_config import DocumentTypeDefinition, FieldDefinition, ExtractionConfig
from .extracted_field import ExtractedFieldData, FieldOwner, MAX_EXTRACTED_TEXT_LENGTH
from .workflows import (
    DocumentStatus,
    ExtractionMethod,
    DocumentExtractionRequest,
    DocumentExtractionResult,
    SessionExtractionRequest,
    SessionExtractionResult,
)

__all__ = [
    "DocumentTypeDefinition",
    "FieldDefinition",
    "ExtractionConfig",
    "ExtractedFieldData",
    "FieldOwner",
    "MAX_EXTRACTED_TEXT_LENGTH",
    "DocumentStatus",
    "ExtractionMethod",
    "DocumentExtractionRequest",
    "DocumentExtractionResult",
    "SessionExtractionRequest",
    "SessionExtractionResult",
]
