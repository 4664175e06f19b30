"""Keyword-scored document type classification.

Each configured type scores the total number of keyword occurrences in the
lower-cased text. The best score wins, ties go to the type listed first in
the configuration, and a best score under MIN_CLASSIFICATION_SCORE means the
document is left unclassified. The threshold does not scale with document
length.
"""

from typing import Dict, Optional

from auxos_worker.schemas.extraction_config import ExtractionConfig
from auxos_worker.utils.logging import get_logger

LOGGER = get_logger(__name__)

MIN_CLASSIFICATION_SCORE = 2


class DocumentClassifier:
    """Classifies document text against the configured document types."""

    def __init__(self, min_score: int = MIN_CLASSIFICATION_SCORE):
        self.min_score = min_score

    def score(self, text: str, config: ExtractionConfig) -> Dict[str, int]:
        """Keyword hit count per document type, in configuration order."""
        text_lower = text.lower()
        scores: Dict[str, int] = {}
        for doc_type, definition in config.document_types.items():
            scores[doc_type] = sum(
                text_lower.count(keyword.lower())
                for keyword in definition.keywords
                if keyword
            )
        return scores

    def classify(self, text: str, config: ExtractionConfig) -> Optional[str]:
        """Best matching document type id, or None when evidence is too weak."""
        scores = self.score(text, config)

        best_type: Optional[str] = None
        best_score = 0
        for doc_type, type_score in scores.items():
            # Strict comparison keeps the first configured type on ties
            if best_type is None or type_score > best_score:
                best_type, best_score = doc_type, type_score

        if best_type is None or best_score < self.min_score:
            LOGGER.info(
                "Document could not be classified",
                extra={"best_type": best_type, "best_score": best_score},
            )
            return None

        LOGGER.info(
            f"Document classified as {best_type}",
            extra={"document_type": best_type, "score": best_score, "scores": scores},
        )
        return best_type
