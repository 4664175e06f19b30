"""Service for starting and querying extraction workflows.

Used by the document upload path to kick off extraction once a file is
stored. Starting a workflow never raises: a start failure is reported in the
returned dict so the upload itself still succeeds.
"""

from typing import Any, Dict, Optional

from temporalio.client import Client as TemporalClient
from temporalio.common import WorkflowIDReusePolicy

from auxos_worker.core.config import settings
from auxos_worker.core.exceptions import AppError
from auxos_worker.core.temporal_client import get_temporal_client
from auxos_worker.schemas.workflows import DocumentExtractionRequest, SessionExtractionRequest
from auxos_worker.temporal.core.constants import (
    DOCUMENT_WORKFLOW_ID_PREFIX,
    SESSION_WORKFLOW_ID_PREFIX,
)
from auxos_worker.temporal.workflows.extract_document import ExtractDocumentWorkflow
from auxos_worker.temporal.workflows.extract_session_documents import ExtractSessionDocumentsWorkflow
from auxos_worker.utils.logging import get_logger

LOGGER = get_logger(__name__)


class ExtractionWorkflowService:
    """Starts extraction workflows on the worker's task queue."""

    def __init__(self, client: Optional[TemporalClient] = None, task_queue: Optional[str] = None):
        self._client = client
        self.task_queue = task_queue or settings.temporal_task_queue

    async def _get_client(self) -> TemporalClient:
        if self._client is None:
            self._client = await get_temporal_client()
        return self._client

    async def start_document_extraction(
        self,
        document_id: str,
        session_id: Optional[str] = None,
        submission_id: Optional[str] = None,
        lead_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Start ExtractDocumentWorkflow for one document.

        Re-running a document (manual reprocess) reuses the same workflow id
        once the previous run has closed.

        Returns:
            Dict with document_id, workflow_id, status and, on failure, error
        """
        workflow_id = f"{DOCUMENT_WORKFLOW_ID_PREFIX}{document_id}"
        try:
            request = DocumentExtractionRequest(
                document_id=document_id,
                session_id=session_id,
                submission_id=submission_id,
                lead_id=lead_id,
            )
            client = await self._get_client()
            handle = await client.start_workflow(
                ExtractDocumentWorkflow.run,
                request.model_dump(),
                id=workflow_id,
                task_queue=self.task_queue,
                id_reuse_policy=WorkflowIDReusePolicy.ALLOW_DUPLICATE,
            )
        except Exception as e:
            LOGGER.error(
                f"Failed to start extraction workflow: {str(e)}",
                exc_info=True,
                extra={"document_id": document_id, "workflow_id": workflow_id},
            )
            return {
                "document_id": document_id,
                "workflow_id": workflow_id,
                "status": "failed",
                "error": str(e),
            }

        LOGGER.info(
            f"Extraction workflow started: {handle.id}",
            extra={"document_id": document_id},
        )
        return {
            "document_id": document_id,
            "workflow_id": handle.id,
            "status": "processing",
        }

    async def start_session_extraction(
        self,
        session_id: Optional[str] = None,
        submission_id: Optional[str] = None,
        parallel: bool = False,
    ) -> Dict[str, Any]:
        """Start ExtractSessionDocumentsWorkflow for a session or a submission.

        Raises:
            AppError: If the workflow could not be started
        """
        request = SessionExtractionRequest(
            session_id=session_id,
            submission_id=submission_id,
            parallel=parallel,
        )
        workflow_id = f"{SESSION_WORKFLOW_ID_PREFIX}{session_id or submission_id}"
        try:
            client = await self._get_client()
            handle = await client.start_workflow(
                ExtractSessionDocumentsWorkflow.run,
                request.model_dump(),
                id=workflow_id,
                task_queue=self.task_queue,
                id_reuse_policy=WorkflowIDReusePolicy.ALLOW_DUPLICATE,
            )
        except Exception as e:
            LOGGER.error(
                f"Failed to start session extraction workflow: {str(e)}",
                exc_info=True,
                extra={"workflow_id": workflow_id},
            )
            raise AppError(
                f"Failed to start session extraction workflow: {str(e)}",
                original_error=e
            )

        return {"workflow_id": handle.id, "status": "processing"}

    async def get_status(self, workflow_id: str) -> Dict[str, Any]:
        """Query a running workflow's ``get_status`` handler."""
        try:
            client = await self._get_client()
            handle = client.get_workflow_handle(workflow_id)
            status_data = await handle.query("get_status")
        except Exception as e:
            LOGGER.error(
                f"Failed to query workflow status: {str(e)}",
                exc_info=True,
                extra={"workflow_id": workflow_id}
            )
            raise AppError(
                f"Failed to query workflow status for {workflow_id}: {str(e)}",
                original_error=e
            )
        return {"workflow_id": workflow_id, **status_data}

    async def get_result(self, workflow_id: str) -> Dict[str, Any]:
        """Wait for a workflow to finish and return its result."""
        client = await self._get_client()
        handle = client.get_workflow_handle(workflow_id)
        return await handle.result()
