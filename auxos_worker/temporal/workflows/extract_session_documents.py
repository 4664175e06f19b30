"""Session-level extraction workflow.

Runs ExtractDocumentWorkflow as a child for every document of an intake
session or a submission and reports each outcome. A failing child is recorded
as a failed result for its document; its siblings still run.
"""

import asyncio
from typing import Any, Dict

from temporalio import workflow

from auxos_worker.schemas.workflows import (
    DocumentExtractionResult,
    SessionExtractionRequest,
    SessionExtractionResult,
)
from auxos_worker.temporal.core.constants import API_ACTIVITY_TIMEOUT, DEFAULT_RETRY_POLICY
from auxos_worker.temporal.core.workflow_registry import WorkflowRegistry, WorkflowType
from auxos_worker.temporal.workflows.extract_document import ExtractDocumentWorkflow, describe_failure


@WorkflowRegistry.register(
    category=WorkflowType.COMPOSITE,
    dependencies=["ExtractDocumentWorkflow"],
)
@workflow.defn
class ExtractSessionDocumentsWorkflow:
    """Fans document extraction out over a session's documents."""

    def __init__(self):
        self._status = "initialized"
        self._documents_total = 0
        self._documents_done = 0

    @workflow.query
    def get_status(self) -> dict:
        return {
            "status": self._status,
            "documents_total": self._documents_total,
            "documents_done": self._documents_done,
        }

    @workflow.run
    async def run(self, payload: Dict[str, Any]) -> dict:
        request = SessionExtractionRequest.model_validate(payload)
        self._status = "running"

        if request.session_id:
            parent = await workflow.execute_activity(
                "get_session",
                args=[request.session_id],
                start_to_close_timeout=API_ACTIVITY_TIMEOUT,
                retry_policy=DEFAULT_RETRY_POLICY,
            )
        else:
            parent = await workflow.execute_activity(
                "get_submission",
                args=[request.submission_id],
                start_to_close_timeout=API_ACTIVITY_TIMEOUT,
                retry_policy=DEFAULT_RETRY_POLICY,
            )

        document_ids = [doc["id"] for doc in parent.get("documents") or [] if doc.get("id")]
        self._documents_total = len(document_ids)

        workflow.logger.info(
            f"Extracting {len(document_ids)} documents "
            f"({'parallel' if request.parallel else 'sequential'})",
            extra={"session_id": request.session_id, "submission_id": request.submission_id},
        )

        if request.parallel:
            results = list(
                await asyncio.gather(
                    *(self._extract_document(request, doc_id) for doc_id in document_ids)
                )
            )
        else:
            results = []
            for doc_id in document_ids:
                results.append(await self._extract_document(request, doc_id))

        succeeded = sum(1 for r in results if r.success)
        self._status = "completed"

        return SessionExtractionResult(
            session_id=request.session_id,
            submission_id=request.submission_id,
            documents_processed=len(results),
            succeeded=succeeded,
            failed=len(results) - succeeded,
            results=results,
        ).model_dump(mode="json")

    async def _extract_document(
        self, request: SessionExtractionRequest, document_id: str
    ) -> DocumentExtractionResult:
        child_payload = {
            "document_id": document_id,
            "session_id": request.session_id,
            "submission_id": request.submission_id,
        }
        try:
            child_result = await workflow.execute_child_workflow(
                ExtractDocumentWorkflow.run,
                child_payload,
                id=f"{workflow.info().workflow_id}-doc-{document_id}",
            )
            result = DocumentExtractionResult.model_validate(child_result)
        except Exception as e:
            message = describe_failure(e)
            workflow.logger.error(
                f"Child extraction failed for document {document_id}: {message}",
                extra={"document_id": document_id},
            )
            result = DocumentExtractionResult(
                success=False,
                document_id=document_id,
                error=message,
            )

        self._documents_done += 1
        return result

