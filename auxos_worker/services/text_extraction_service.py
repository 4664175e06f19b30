"""PDF text extraction with pdfplumber."""

from io import BytesIO

import pdfplumber

from auxos_worker.core.exceptions import UnsupportedDocumentError
from auxos_worker.utils.logging import get_logger

LOGGER = get_logger(__name__)

# The PDF header may be preceded by junk bytes within the first kilobyte
PDF_HEADER_WINDOW = 1024


class TextExtractionService:
    """Converts PDF bytes into plain text.

    Image-only (scanned) PDFs yield an empty or near-empty string rather than
    an error; deciding whether that is enough text is the caller's job.
    """

    def extract_text(self, pdf_bytes: bytes) -> str:
        """Extract the text of every page, joined by newlines.

        Raises:
            UnsupportedDocumentError: If the bytes are not a PDF or cannot be parsed
        """
        if not pdf_bytes or b"%PDF" not in pdf_bytes[:PDF_HEADER_WINDOW]:
            raise UnsupportedDocumentError("Unsupported document: only PDF files can be processed")

        try:
            with pdfplumber.open(BytesIO(pdf_bytes)) as pdf:
                page_texts = [page.extract_text() or "" for page in pdf.pages]
        except Exception as e:
            raise UnsupportedDocumentError(f"Failed to extract PDF text: {e}", original_error=e)

        text = "\n".join(page_texts)
        LOGGER.info(
            f"Extracted {len(text)} characters from {len(page_texts)} pages",
            extra={"page_count": len(page_texts), "text_length": len(text)},
        )
        return text
