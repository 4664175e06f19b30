"""Document extraction activities.

Every external call the extraction workflows make runs here: persistence API
reads and writes, object storage, PDF parsing and field extraction. The
collaborators are injected once when the worker starts, so the activities hold
no per-run state and can execute concurrently.

Activities raise typed errors from ``auxos_worker.core.exceptions``; the
workflow decides what a failure means for the document's status.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional

from temporalio import activity

from auxos_worker.core.config import Settings
from auxos_worker.core.exceptions import DocumentTooLargeError, FieldOwnerError, UnsupportedDocumentError
from auxos_worker.schemas.extracted_field import ExtractedFieldData, FieldOwner
from auxos_worker.schemas.extraction_config import ExtractionConfig
from auxos_worker.schemas.workflows import DocumentExtractionRequest, DocumentStatus
from auxos_worker.services.config_provider import ExtractionConfigProvider, create_config_provider
from auxos_worker.services.document_classifier import DocumentClassifier
from auxos_worker.services.extraction.field_extraction_service import FieldExtractionService
from auxos_worker.services.persistence_gateway import PersistenceGateway
from auxos_worker.services.storage_service import StorageService
from auxos_worker.services.text_extraction_service import TextExtractionService
from auxos_worker.temporal.core.constants import MAX_DOCUMENT_TEXT_BYTES

# Older documents carry ``storageKey``; the current API returns ``fileKey``
STORAGE_KEY_FIELDS = ("fileKey", "storageKey")


class DocumentExtractionActivities:
    """Activity implementations bound to their service dependencies."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        storage: StorageService,
        text_extractor: TextExtractionService,
        config_provider: ExtractionConfigProvider,
        classifier: DocumentClassifier,
        field_extraction: FieldExtractionService,
    ):
        self.gateway = gateway
        self.storage = storage
        self.text_extractor = text_extractor
        self.config_provider = config_provider
        self.classifier = classifier
        self.field_extraction = field_extraction

    @classmethod
    def from_settings(cls, app_settings: Settings) -> "DocumentExtractionActivities":
        return cls(
            gateway=PersistenceGateway(app_settings.api),
            storage=StorageService(app_settings.storage),
            text_extractor=TextExtractionService(),
            config_provider=create_config_provider(app_settings),
            classifier=DocumentClassifier(),
            field_extraction=FieldExtractionService.from_settings(app_settings.llm),
        )

    def as_list(self) -> List[Callable]:
        """Bound activity methods for ``Worker(activities=...)``."""
        return [
            self.ping,
            self.update_document_status,
            self.get_document,
            self.get_session,
            self.get_submission,
            self.resolve_field_owner,
            self.extract_document_text,
            self.load_extraction_config,
            self.classify_document,
            self.extract_fields,
            self.save_extracted_fields,
            self.search_text_in_document,
        ]

    @activity.defn(name="ping")
    async def ping(self) -> str:
        return "pong"

    @activity.defn(name="update_document_status")
    async def update_document_status(
        self,
        document_id: str,
        status: str,
        document_type: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> None:
        await self.gateway.update_document_status(
            document_id,
            DocumentStatus(status),
            document_type=document_type,
            error_message=error_message,
        )

    @activity.defn(name="get_document")
    async def get_document(self, document_id: str) -> Dict[str, Any]:
        return await self.gateway.get_document(document_id)

    @activity.defn(name="get_session")
    async def get_session(self, session_id: str) -> Dict[str, Any]:
        return await self.gateway.get_session(session_id)

    @activity.defn(name="get_submission")
    async def get_submission(self, submission_id: str) -> Dict[str, Any]:
        return await self.gateway.get_submission(submission_id)

    @activity.defn(name="resolve_field_owner")
    async def resolve_field_owner(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """Find the lead or submission the document's fields belong to.

        An explicit lead id wins, then the session's lead, then the submission.
        """
        extraction_request = DocumentExtractionRequest.model_validate(request)

        if extraction_request.lead_id:
            # Raises LeadNotFoundError for an unknown lead
            await self.gateway.get_lead(extraction_request.lead_id)
            owner = FieldOwner(lead_id=extraction_request.lead_id)
        elif extraction_request.session_id:
            session = await self.gateway.get_session(extraction_request.session_id)
            lead = session.get("lead") or {}
            lead_id = lead.get("id") or session.get("leadId")
            if not lead_id:
                raise FieldOwnerError("Session does not have an associated lead")
            owner = FieldOwner(lead_id=lead_id)
        else:
            owner = FieldOwner(submission_id=extraction_request.submission_id)

        activity.logger.info(
            f"Resolved field owner for document {extraction_request.document_id}",
            extra=owner.to_payload(),
        )
        return owner.to_payload()

    @activity.defn(name="extract_document_text")
    async def extract_document_text(self, document: Dict[str, Any]) -> str:
        """Download the document's file and return its text.

        Download and parsing share one activity so raw file bytes never enter
        workflow history.
        """
        storage_key = next((document[k] for k in STORAGE_KEY_FIELDS if document.get(k)), None)
        if not storage_key:
            raise UnsupportedDocumentError(f"Document {document.get('id')} has no storage key")

        activity.heartbeat("Downloading document")
        pdf_bytes = await self.storage.download(storage_key)

        activity.heartbeat(f"Parsing {len(pdf_bytes)} bytes")
        # pdfplumber is blocking
        text = await asyncio.to_thread(self.text_extractor.extract_text, pdf_bytes)

        text_bytes = len(text.encode("utf-8"))
        if text_bytes > MAX_DOCUMENT_TEXT_BYTES:
            raise DocumentTooLargeError(
                f"Document text is too large to process ({text_bytes} bytes, limit {MAX_DOCUMENT_TEXT_BYTES})"
            )

        activity.logger.info(
            f"Extracted {len(text)} characters",
            extra={"document_id": document.get("id"), "storage_key": storage_key},
        )
        return text

    @activity.defn(name="load_extraction_config")
    async def load_extraction_config(self) -> Dict[str, Any]:
        config = await self.config_provider.load()
        return config.to_payload()

    @activity.defn(name="classify_document")
    async def classify_document(self, text: str, config_payload: Dict[str, Any]) -> Optional[str]:
        config = ExtractionConfig.model_validate(config_payload)
        return self.classifier.classify(text, config)

    @activity.defn(name="extract_fields")
    async def extract_fields(
        self,
        text: str,
        config_payload: Dict[str, Any],
        document_type: Optional[str],
    ) -> Dict[str, Any]:
        config = ExtractionConfig.model_validate(config_payload)
        activity.heartbeat("Extracting fields")
        outcome = await self.field_extraction.extract(text, config, document_type)

        activity.logger.info(
            f"Extracted {len(outcome.fields)} fields via {outcome.method.value}",
            extra={"document_type": document_type, "method": outcome.method.value},
        )
        return {
            "fields": [field.to_payload() for field in outcome.fields],
            "method": outcome.method.value,
        }

    @activity.defn(name="save_extracted_fields")
    async def save_extracted_fields(
        self,
        owner_payload: Dict[str, Any],
        document_id: str,
        fields_payload: List[Dict[str, Any]],
    ) -> int:
        """Save each field independently; a failed write is logged and skipped.

        Returns:
            Number of fields saved
        """
        owner = FieldOwner.model_validate(owner_payload)
        saved_count = 0

        for raw_field in fields_payload:
            field = ExtractedFieldData.model_validate(raw_field)
            try:
                await self.gateway.save_extracted_field(owner, document_id, field)
                saved_count += 1
            except Exception as e:
                activity.logger.error(
                    f"Failed to save field {field.field_name}: {e}",
                    extra={"document_id": document_id, "field_name": field.field_name},
                )

        activity.logger.info(
            f"Saved {saved_count}/{len(fields_payload)} extracted fields",
            extra={"document_id": document_id},
        )
        return saved_count

    @activity.defn(name="search_text_in_document")
    async def search_text_in_document(self, text: str, search_terms: List[str]) -> Dict[str, Any]:
        """Case-insensitive presence check for each search term."""
        normalized_text = text.lower()
        found: Dict[str, bool] = {}
        matches: List[str] = []

        for term in search_terms:
            is_found = term.lower() in normalized_text
            found[term] = is_found
            if is_found:
                matches.append(term)

        return {"found": found, "matches": matches}
