"""Request/result models exchanged with the extraction workflows."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class DocumentStatus(str, Enum):
    """Processing state of one document: pending -> processing -> completed | failed."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ExtractionMethod(str, Enum):
    """Which tier produced the extracted fields."""
    LLM = "llm"
    FALLBACK = "fallback"
    NONE = "none"


class DocumentExtractionRequest(BaseModel):
    """Input of ExtractDocumentWorkflow."""
    document_id: str
    session_id: Optional[str] = None
    submission_id: Optional[str] = None
    lead_id: Optional[str] = None

    @model_validator(mode="after")
    def _require_owner_source(self) -> "DocumentExtractionRequest":
        if not (self.session_id or self.submission_id or self.lead_id):
            raise ValueError("One of session_id, submission_id or lead_id is required")
        return self


class DocumentExtractionResult(BaseModel):
    """Outcome of ExtractDocumentWorkflow for one document."""
    success: bool
    document_id: str
    document_type: Optional[str] = None
    fields_extracted: int = 0
    extraction_method: Optional[ExtractionMethod] = None
    error: Optional[str] = None


class SessionExtractionRequest(BaseModel):
    """Input of ExtractSessionDocumentsWorkflow."""
    session_id: Optional[str] = None
    submission_id: Optional[str] = None
    parallel: bool = Field(default=False, description="Run document children concurrently")

    @model_validator(mode="after")
    def _require_exactly_one_parent(self) -> "SessionExtractionRequest":
        if bool(self.session_id) == bool(self.submission_id):
            raise ValueError("Exactly one of session_id or submission_id is required")
        return self


class SessionExtractionResult(BaseModel):
    """Per-document outcomes for every document of a session or submission."""
    session_id: Optional[str] = None
    submission_id: Optional[str] = None
    documents_processed: int
    succeeded: int
    failed: int
    results: List[DocumentExtractionResult] = Field(default_factory=list)
