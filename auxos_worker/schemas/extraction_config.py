"""Declarative extraction schema: document types and per-field instructions.

Both maps keep the key order of the source document. Classification ties and
the order fields are tried in depend on it, so the order survives
``model_dump`` and the JSON round trip through Temporal payloads.
"""

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DocumentTypeDefinition(BaseModel):
    """A document category and the keywords that evidence it."""
    label: str
    description: str = ""
    keywords: List[str] = Field(default_factory=list)


class FieldDefinition(BaseModel):
    """Authoring-time definition of one extractable field."""

    model_config = ConfigDict(populate_by_name=True)

    label: str
    mandatory: bool = False
    instructions: str = ""
    keywords: List[str] = Field(default_factory=list)
    patterns: List[str] = Field(default_factory=list, description="Regexes tried in order; group 1 is the value")
    document_types: List[str] = Field(
        default_factory=list,
        alias="documentTypes",
        description="Document type ids this field applies to; empty means any type",
    )

    def applies_to(self, document_type: Optional[str]) -> bool:
        if document_type is None or not self.document_types:
            return True
        return document_type in self.document_types


class ExtractionConfig(BaseModel):
    """The full extraction schema loaded once per workflow run."""

    model_config = ConfigDict(populate_by_name=True)

    document_types: Dict[str, DocumentTypeDefinition] = Field(
        default_factory=dict, alias="documentTypes"
    )
    field_extraction_instructions: Dict[str, FieldDefinition] = Field(
        default_factory=dict, alias="fieldExtractionInstructions"
    )

    @model_validator(mode="after")
    def _check_document_type_references(self) -> "ExtractionConfig":
        known = set(self.document_types)
        for field_name, definition in self.field_extraction_instructions.items():
            unknown = [t for t in definition.document_types if t not in known]
            if unknown:
                raise ValueError(
                    f"Field '{field_name}' references unknown document types: {', '.join(unknown)}"
                )
        return self

    def fields_for_document_type(
        self, document_type: Optional[str]
    ) -> List[Tuple[str, FieldDefinition]]:
        """Fields to extract for a classified type, in configuration order.

        An unknown type (None) selects every field.
        """
        return [
            (name, definition)
            for name, definition in self.field_extraction_instructions.items()
            if definition.applies_to(document_type)
        ]

    def to_payload(self) -> dict:
        """Dump with the wire keys so the config can cross an activity boundary."""
        return self.model_dump(by_alias=True)
