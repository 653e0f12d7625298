"""
PDF text extraction using PyMuPDF
"""
import logging
from pathlib import Path
from typing import List, Union

import fitz  # PyMuPDF

from textbook_ingestion.exceptions import DocumentUnreadable
from textbook_ingestion.schemas.pipeline import ExtractionResult

logger = logging.getLogger(__name__)


def extract_text_from_pdf(source: Union[str, Path, bytes]) -> ExtractionResult:
    """
    Extract a single linear text stream from a PDF

    Fragments on a line are joined with single spaces, lines with a newline,
    text blocks and pages with a blank line. Page order is preserved but page
    boundaries are not kept as structured data.

    Args:
        source: Path to the PDF or its raw bytes

    Returns:
        ExtractionResult with text, page count and document metadata

    Raises:
        DocumentUnreadable: not a PDF, locked, or no text layer at all
    """
    try:
        if isinstance(source, (bytes, bytearray)):
            doc = fitz.open(stream=bytes(source), filetype="pdf")
        else:
            doc = fitz.open(str(source), filetype="pdf")
    except Exception as e:
        logger.error(f"Failed to open PDF: {str(e)}")
        raise DocumentUnreadable(f"Failed to extract text from PDF: {str(e)}") from e

    try:
        if doc.needs_pass and not doc.authenticate(""):
            raise DocumentUnreadable("PDF is password protected")

        pages = [_page_text(page) for page in doc]
        page_count = doc.page_count
        raw_metadata = doc.metadata or {}
    except DocumentUnreadable:
        raise
    except Exception as e:
        logger.error(f"Failed to read PDF content: {str(e)}")
        raise DocumentUnreadable(f"Failed to extract text from PDF: {str(e)}") from e
    finally:
        doc.close()

    text = "\n\n".join(page for page in pages if page)

    if not text.strip():
        # Image-only scans end up here; no OCR fallback
        raise DocumentUnreadable(
            f"No extractable text found in PDF ({page_count} pages). "
            "Scanned documents without a text layer are not supported."
        )

    metadata = {
        "info": {
            key: value for key, value in raw_metadata.items()
            if value and key != "format"
        },
        "version": raw_metadata.get("format"),
    }

    logger.info(f"Extracted {len(text)} characters from {page_count} pages")

    return ExtractionResult(text=text, page_count=page_count, metadata=metadata)


def _page_text(page) -> str:
    """Text of one page, block by block"""
    blocks: List[str] = []

    for block in page.get_text("dict")["blocks"]:
        if block.get("type") != 0:  # images
            continue

        lines = []
        for line in block.get("lines", []):
            fragments = [span["text"].strip() for span in line.get("spans", [])]
            joined = " ".join(fragment for fragment in fragments if fragment)
            if joined:
                lines.append(joined)

        if lines:
            blocks.append("\n".join(lines))

    return "\n\n".join(blocks)
