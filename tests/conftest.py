"""Pytest configuration and shared fixtures."""

import os

# Settings are read at import time; keep tests independent of a developer .env
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("API_URL", "http://api.test")
os.environ.setdefault("STORAGE_URL", "http://storage.test")
os.environ.setdefault("STORAGE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("EXTRACTION_CONFIG_SOURCE", "file")
os.environ.setdefault("OPENROUTER_API_KEY", "")
os.environ.setdefault("GEMINI_API_KEY", "")

import asyncio
import json
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, Mock

import pytest

from auxos_worker.schemas.extraction_config import ExtractionConfig


class FakeLLMClient:
    """Stands in for a provider client; records every call it receives."""

    def __init__(self, response: Any = None, error: Optional[Exception] = None, delay: float = 0.0):
        self.response = response
        self.error = error
        self.delay = delay
        self.calls: List[Dict[str, Any]] = []

    async def generate_content(self, contents, system_instruction=None, generation_config=None):
        self.calls.append(
            {
                "contents": contents,
                "system_instruction": system_instruction,
                "generation_config": generation_config,
            }
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        if isinstance(self.response, dict):
            return json.dumps(self.response)
        return self.response


@pytest.fixture
def sample_config_payload() -> Dict[str, Any]:
    """Small extraction config with two document types and four fields.

    Returns:
        dict: Config in its JSON wire format
    """
    return {
        "documentTypes": {
            "acord_form": {
                "label": "ACORD Application",
                "description": "Commercial insurance application",
                "keywords": ["acord", "named insured"],
            },
            "loss_run": {
                "label": "Loss Run",
                "description": "Claims history",
                "keywords": ["loss run", "claim number"],
            },
        },
        "fieldExtractionInstructions": {
            "businessName": {
                "label": "Legal Business Name",
                "mandatory": True,
                "instructions": "Full legal name of the applicant",
                "keywords": ["Named Insured"],
                "patterns": [],
                "documentTypes": [],
            },
            "revenue": {
                "label": "Annual Revenue",
                "mandatory": True,
                "instructions": "Annual gross revenue in dollars",
                "keywords": ["Annual Revenue"],
                "patterns": ["Annual Revenue[:\\s]+\\$?([\\d,]+)"],
                "documentTypes": ["acord_form"],
            },
            "coinsurancePercent": {
                "label": "Coinsurance",
                "mandatory": False,
                "instructions": "Coinsurance percentage",
                "keywords": ["Coinsurance"],
                "patterns": ["Coinsurance[:\\s]+(\\d+)%"],
                "documentTypes": ["acord_form"],
            },
            "totalClaimsCount": {
                "label": "Total Claims",
                "mandatory": False,
                "instructions": "Number of claims",
                "keywords": ["Total Claims"],
                "patterns": ["Total Claims[:\\s]+(\\d+)"],
                "documentTypes": ["loss_run"],
            },
        },
    }


@pytest.fixture
def extraction_config(sample_config_payload) -> ExtractionConfig:
    return ExtractionConfig.model_validate(sample_config_payload)


@pytest.fixture
def fake_llm_client():
    """Factory for FakeLLMClient instances."""
    return FakeLLMClient


@pytest.fixture
def sample_pdf_content() -> bytes:
    """Sample PDF content for testing.

    Returns:
        bytes: Sample PDF content
    """
    # Minimal valid PDF header
    return b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n1 0 obj\n<<\n/Type /Catalog\n/Pages 2 0 R\n>>\nendobj\n"


@pytest.fixture
def mock_httpx_response():
    """Factory for httpx-like responses.

    Returns:
        Callable building a Mock with status_code, content, text and json()
    """
    def _build(status_code: int = 200, json_data: Any = None, content: Optional[bytes] = None):
        response = Mock()
        response.status_code = status_code
        response.is_success = 200 <= status_code < 300
        if content is None:
            content = json.dumps(json_data).encode() if json_data is not None else b""
        response.content = content
        response.text = content.decode("utf-8", errors="replace")
        response.json = Mock(return_value=json_data)
        return response

    return _build


@pytest.fixture
def mock_gateway() -> AsyncMock:
    """Persistence gateway double with every method async."""
    gateway = AsyncMock()
    gateway.get_document.return_value = {"id": "doc-1", "fileKey": "uploads/doc-1.pdf"}
    gateway.get_session.return_value = {"id": "session-1", "lead": {"id": "lead-1"}, "documents": []}
    return gateway
