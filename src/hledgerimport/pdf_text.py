"""
Text extraction for PDF invoices.
"""

import logging
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PdfReadError

logger = logging.getLogger(__name__)


class PdfExtractionError(Exception):
    """Exception raised when text cannot be extracted from a PDF file."""


def extract_text(pdf_file: str | Path) -> bytes:
    """
    Extract the text of all pages, keeping the physical line layout.

    Args:
        pdf_file: Path to the PDF file

    Returns:
        UTF-8 encoded text, pages separated by form feeds
    """
    try:
        reader = PdfReader(pdf_file)
        pages = [page.extract_text(extraction_mode="layout") or "" for page in reader.pages]
    except (PdfReadError, OSError) as e:
        raise PdfExtractionError(f"Failed to extract text from {pdf_file}: {e}") from e

    logger.debug(f"Extracted {len(pages)} pages from {pdf_file}")
    return "\f".join(pages).encode("utf-8")
