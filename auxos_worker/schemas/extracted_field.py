"""Extraction output records and the owner they are persisted against."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MAX_EXTRACTED_TEXT_LENGTH = 1000


class ExtractedFieldData(BaseModel):
    """One extracted value with its provenance.

    ``extracted_text`` is a raw slice of the document for pattern matches but
    the model's reasoning for LLM extractions, so it may or may not contain a
    literal occurrence of ``field_value``.
    """

    model_config = ConfigDict(populate_by_name=True)

    field_name: str = Field(alias="fieldName", min_length=1)
    field_value: str = Field(alias="fieldValue", min_length=1)
    confidence: float = Field(ge=0.0, le=1.0)
    source: str
    extracted_text: str = Field(default="", alias="extractedText")

    @field_validator("extracted_text")
    @classmethod
    def _truncate_extracted_text(cls, value: str) -> str:
        return value[:MAX_EXTRACTED_TEXT_LENGTH]

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


class FieldOwner(BaseModel):
    """Lead or submission that extracted fields are attached to."""

    model_config = ConfigDict(populate_by_name=True)

    lead_id: Optional[str] = Field(default=None, alias="leadId")
    submission_id: Optional[str] = Field(default=None, alias="submissionId")

    @model_validator(mode="after")
    def _require_one_id(self) -> "FieldOwner":
        if not self.lead_id and not self.submission_id:
            raise ValueError("FieldOwner needs a lead_id or a submission_id")
        return self

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
