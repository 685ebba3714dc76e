"""
PDF text extraction and cleaning
"""
import io
import logging
import re

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from core.exceptions import ExtractionError

logger = logging.getLogger(__name__)


class PDFProcessor:
    """Handles PDF text extraction and whitespace normalization."""

    @staticmethod
    def extract_text(pdf_bytes: bytes) -> str:
        """Extract raw text from PDF bytes, one page per line block."""
        try:
            reader = PdfReader(io.BytesIO(pdf_bytes))
        except (PdfReadError, ValueError, OSError) as e:
            raise ExtractionError(f"Failed to read PDF: {e}") from e

        text_pages = []
        for i, page in enumerate(reader.pages):
            try:
                extracted = page.extract_text()
            except Exception as e:
                # One unreadable page should not sink the whole document
                logger.warning("Skipping page %d: %s", i + 1, e)
                continue
            if extracted:
                text_pages.append(extracted)

        return "\n".join(text_pages)

    @staticmethod
    def clean_text(text: str) -> str:
        """Collapse runs of spaces/tabs and runs of newlines, then trim."""
        text = text.replace("\r\n", "\n").replace("\r", "\n")
        text = re.sub(r"[ \t]+", " ", text)
        text = re.sub(r" ?\n[ \n]*", "\n", text)
        return text.strip()
