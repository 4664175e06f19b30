"""Client for the persistence API that owns documents, sessions, leads and extracted fields.

The worker never talks to the database directly. Every read and write goes
through this gateway, one HTTP call per operation.
"""

from typing import Any, Dict, Optional, Type

import httpx

from auxos_worker.core.config import ApiSettings
from auxos_worker.core.exceptions import (
    APIClientError,
    APITimeoutError,
    DocumentNotFoundError,
    LeadNotFoundError,
    NotFoundError,
    SessionNotFoundError,
)
from auxos_worker.schemas.extracted_field import ExtractedFieldData, FieldOwner
from auxos_worker.schemas.workflows import DocumentStatus
from auxos_worker.utils.logging import get_logger

LOGGER = get_logger(__name__)


class PersistenceGateway:
    """Thin async wrapper over the persistence REST API."""

    def __init__(self, api_settings: ApiSettings):
        self.base_url = api_settings.url.rstrip("/")
        self.timeout = api_settings.timeout_seconds
        self.headers = {"Content-Type": "application/json"}
        if api_settings.api_key:
            self.headers["x-api-key"] = api_settings.api_key

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        not_found_error: Type[NotFoundError] = NotFoundError,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient() as client:
                response = await client.request(
                    method,
                    url,
                    json=json,
                    headers=self.headers,
                    timeout=self.timeout,
                )
        except httpx.TimeoutException as e:
            raise APITimeoutError(f"{method} {path} timed out", original_error=e)
        except httpx.HTTPError as e:
            raise APIClientError(f"{method} {path} failed: {e}", original_error=e)

        if response.status_code == 404:
            raise not_found_error(f"{method} {path} returned 404")

        if not response.is_success:
            LOGGER.error(
                f"Persistence API error on {method} {path}",
                extra={"status_code": response.status_code, "error_body": response.text[:500]},
            )
            raise APIClientError(
                f"{method} {path} failed with status {response.status_code}: {response.text}"
            )

        if not response.content:
            return None
        return response.json()

    async def get_document(self, document_id: str) -> Dict[str, Any]:
        """Fetch document metadata (storage key, status, type)."""
        return await self._request(
            "GET", f"/documents/{document_id}", not_found_error=DocumentNotFoundError
        )

    async def get_session(self, session_id: str) -> Dict[str, Any]:
        """Fetch an intake session with its documents and lead."""
        return await self._request(
            "GET", f"/sessions/{session_id}", not_found_error=SessionNotFoundError
        )

    async def get_submission(self, submission_id: str) -> Dict[str, Any]:
        """Fetch a submission with its documents."""
        return await self._request(
            "GET", f"/submissions/{submission_id}", not_found_error=SessionNotFoundError
        )

    async def get_lead(self, lead_id: str) -> Dict[str, Any]:
        """Fetch a lead; used to confirm an explicitly requested field owner exists."""
        return await self._request(
            "GET", f"/leads/{lead_id}", not_found_error=LeadNotFoundError
        )

    async def update_document_status(
        self,
        document_id: str,
        status: DocumentStatus,
        document_type: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> None:
        """Write the document's processing status, and its type or error when given."""
        body: Dict[str, Any] = {"processingStatus": DocumentStatus(status).value}
        if document_type:
            body["docType"] = document_type
        if error_message:
            body["processingError"] = error_message

        await self._request(
            "PATCH", f"/documents/{document_id}", json=body, not_found_error=DocumentNotFoundError
        )
        LOGGER.info(
            f"Document status updated to {body['processingStatus']}",
            extra={"document_id": document_id, "document_type": document_type},
        )

    async def save_extracted_field(
        self,
        owner: FieldOwner,
        document_id: str,
        field: ExtractedFieldData,
    ) -> Dict[str, Any]:
        """Persist one extracted field. The API upserts by owner, document and field name."""
        body = {
            **owner.to_payload(),
            "documentId": document_id,
            **field.to_payload(),
        }
        return await self._request("POST", "/extracted-fields", json=body)
