from .extract_document import ExtractDocumentWorkflow
from .extract_session_documents import ExtractSessionDocumentsWorkflow

__all__ = [
    "ExtractDocumentWorkflow",
    "ExtractSessionDocumentsWorkflow",
]
