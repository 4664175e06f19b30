"""Per-document extraction workflow.

Drives one document through processing -> completed | failed:
fetch metadata, download and parse the file, load the extraction config,
classify, extract fields (LLM first, pattern fallback), save fields, and
record the final status.

Data errors never escape ``run``: they become a ``failed`` status plus a
failure result. Status writes are best effort and never mask the result.
"""

import asyncio
from typing import Any, Dict, Optional

from temporalio import workflow
from temporalio.exceptions import ActivityError, ApplicationError, ChildWorkflowError

from auxos_worker.core.exceptions import AppError, InsufficientTextError
from auxos_worker.schemas.workflows import (
    DocumentExtractionRequest,
    DocumentExtractionResult,
    DocumentStatus,
    ExtractionMethod,
)
from auxos_worker.temporal.core import constants
from auxos_worker.temporal.core.constants import (
    API_ACTIVITY_TIMEOUT,
    CLASSIFICATION_TIMEOUT,
    DEFAULT_RETRY_POLICY,
    FIELD_EXTRACTION_RETRY_POLICY,
    FIELD_EXTRACTION_TIMEOUT,
    MIN_TEXT_LENGTH,
    SAVE_FIELDS_TIMEOUT,
    STATUS_UPDATE_RETRY_POLICY,
    TEXT_EXTRACTION_TIMEOUT,
)
from auxos_worker.temporal.core.workflow_registry import WorkflowRegistry, WorkflowType

NO_TEXT_MESSAGE = "No text could be extracted from document"


def describe_failure(error: BaseException) -> str:
    """Human-readable message for a failure, suitable for the document's error field."""
    cause = error
    while isinstance(cause, (ActivityError, ChildWorkflowError)) and cause.cause is not None:
        cause = cause.cause
    if isinstance(cause, (ApplicationError, AppError)):
        return cause.message
    return str(cause) or type(cause).__name__


@WorkflowRegistry.register(category=WorkflowType.EXTRACTION)
@workflow.defn
class ExtractDocumentWorkflow:
    """Extracts structured fields from a single uploaded document."""

    def __init__(self):
        self._status = "initialized"
        self._current_phase: Optional[str] = None
        self._document_type: Optional[str] = None
        self._fields_extracted = 0

    @workflow.query
    def get_status(self) -> dict:
        """Query handler for real-time status updates."""
        return {
            "status": self._status,
            "current_phase": self._current_phase,
            "document_type": self._document_type,
            "fields_extracted": self._fields_extracted,
        }

    @workflow.run
    async def run(self, payload: Dict[str, Any]) -> dict:
        """Execute the extraction pipeline for one document.

        Args:
            payload: DocumentExtractionRequest as a dict

        Returns:
            DocumentExtractionResult as a dict
        """
        request = DocumentExtractionRequest.model_validate(payload)
        document_id = request.document_id

        workflow.logger.info(
            f"Starting document extraction: {document_id}",
            extra={
                "document_id": document_id,
                "session_id": request.session_id,
                "submission_id": request.submission_id,
            },
        )

        self._status = DocumentStatus.PROCESSING.value
        await self._update_status(document_id, DocumentStatus.PROCESSING)

        timeout = constants.DOCUMENT_PIPELINE_TIMEOUT
        try:
            result = await asyncio.wait_for(
                self._run_pipeline(request), timeout=timeout.total_seconds()
            )
        except asyncio.TimeoutError:
            minutes = int(timeout.total_seconds() // 60)
            result = await self._fail(
                document_id,
                f"Document processing timed out after {minutes} minutes",
            )
        except Exception as e:
            result = await self._fail(document_id, describe_failure(e))

        return result.model_dump(mode="json")

    async def _run_pipeline(self, request: DocumentExtractionRequest) -> DocumentExtractionResult:
        document_id = request.document_id

        self._current_phase = "fetch_metadata"
        document = await workflow.execute_activity(
            "get_document",
            args=[document_id],
            start_to_close_timeout=API_ACTIVITY_TIMEOUT,
            retry_policy=DEFAULT_RETRY_POLICY,
        )
        owner = await workflow.execute_activity(
            "resolve_field_owner",
            args=[request.model_dump()],
            start_to_close_timeout=API_ACTIVITY_TIMEOUT,
            retry_policy=DEFAULT_RETRY_POLICY,
        )

        self._current_phase = "text_extraction"
        text = await workflow.execute_activity(
            "extract_document_text",
            args=[document],
            start_to_close_timeout=TEXT_EXTRACTION_TIMEOUT,
            retry_policy=DEFAULT_RETRY_POLICY,
        )
        if len((text or "").strip()) < MIN_TEXT_LENGTH:
            raise InsufficientTextError(NO_TEXT_MESSAGE)

        self._current_phase = "load_config"
        config_payload = await workflow.execute_activity(
            "load_extraction_config",
            start_to_close_timeout=API_ACTIVITY_TIMEOUT,
            retry_policy=DEFAULT_RETRY_POLICY,
        )

        self._current_phase = "classification"
        document_type = await workflow.execute_activity(
            "classify_document",
            args=[text, config_payload],
            start_to_close_timeout=CLASSIFICATION_TIMEOUT,
            retry_policy=DEFAULT_RETRY_POLICY,
        )
        self._document_type = document_type
        workflow.logger.info(
            f"Document {document_id} classified as {document_type or 'unknown'}",
            extra={"document_id": document_id, "document_type": document_type},
        )

        self._current_phase = "field_extraction"
        extraction = await workflow.execute_activity(
            "extract_fields",
            args=[text, config_payload, document_type],
            start_to_close_timeout=FIELD_EXTRACTION_TIMEOUT,
            retry_policy=FIELD_EXTRACTION_RETRY_POLICY,
        )
        fields = extraction.get("fields") or []
        method = ExtractionMethod(extraction.get("method", ExtractionMethod.NONE.value))

        self._current_phase = "save_fields"
        saved_count = 0
        if fields:
            saved_count = await workflow.execute_activity(
                "save_extracted_fields",
                args=[owner, document_id, fields],
                start_to_close_timeout=SAVE_FIELDS_TIMEOUT,
                retry_policy=DEFAULT_RETRY_POLICY,
            )
        self._fields_extracted = saved_count

        self._current_phase = "finalize"
        await self._update_status(document_id, DocumentStatus.COMPLETED, document_type=document_type)
        self._status = DocumentStatus.COMPLETED.value
        self._current_phase = "completed"

        workflow.logger.info(
            f"Document extraction completed: {document_id}",
            extra={
                "document_id": document_id,
                "document_type": document_type,
                "fields_found": len(fields),
                "fields_saved": saved_count,
                "method": method.value,
            },
        )

        return DocumentExtractionResult(
            success=True,
            document_id=document_id,
            document_type=document_type,
            fields_extracted=saved_count,
            extraction_method=method,
        )

    async def _fail(self, document_id: str, message: str) -> DocumentExtractionResult:
        workflow.logger.error(
            f"Document extraction failed: {document_id}: {message}",
            extra={"document_id": document_id, "phase": self._current_phase},
        )
        self._status = DocumentStatus.FAILED.value
        await self._update_status(document_id, DocumentStatus.FAILED, error_message=message)
        return DocumentExtractionResult(
            success=False,
            document_id=document_id,
            document_type=None,
            fields_extracted=0,
            error=message,
        )

    async def _update_status(
        self,
        document_id: str,
        status: DocumentStatus,
        document_type: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> bool:
        """Best-effort status write. A failure is logged and reported as False."""
        try:
            await workflow.execute_activity(
                "update_document_status",
                args=[document_id, status.value, document_type, error_message],
                start_to_close_timeout=API_ACTIVITY_TIMEOUT,
                retry_policy=STATUS_UPDATE_RETRY_POLICY,
            )
            return True
        except Exception as e:
            workflow.logger.error(
                f"Failed to update document status to {status.value}: {describe_failure(e)}",
                extra={"document_id": document_id, "status": status.value},
            )
            return False
