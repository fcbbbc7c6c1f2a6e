"""
CV text extraction service.

Turns an uploaded document (PDF, DOCX or any text/* file) into plain text
that can be fed to the generation prompts. Scanned PDFs are not supported
(no OCR) and simply yield an empty string.
"""

import io
import logging
from pathlib import PurePath
from typing import Optional

import pdfplumber
from docx import Document

from mailcannon.services.errors import ParseError, UnsupportedFormat

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

# Used when the client does not send a usable Content-Type
_EXTENSION_MIME_TYPES = {
    ".pdf": PDF_MIME_TYPE,
    ".docx": DOCX_MIME_TYPE,
    ".doc": "application/msword",
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".markdown": "text/markdown",
}

_GENERIC_MIME_TYPES = {"", "application/octet-stream"}


def resolve_mime_type(filename: Optional[str], declared: Optional[str]) -> str:
    """
    Return the declared mime type, or one inferred from the file extension.

    Browsers often send an empty type (or application/octet-stream) for
    Markdown files and for uploads from mobile pickers.
    """
    mime_type = (declared or "").split(";")[0].strip().lower()
    if mime_type not in _GENERIC_MIME_TYPES:
        return mime_type

    suffix = PurePath(filename or "").suffix.lower()
    return _EXTENSION_MIME_TYPES.get(suffix, mime_type or "application/octet-stream")


def _join_nonempty(parts: list[str], sep: str = "\n\n") -> str:
    return sep.join(p for p in parts if p and p.strip()).strip()


def extract_text_from_pdf(content: bytes) -> str:
    """
    Extract text from a PDF byte buffer using pdfplumber.

    The document is opened as a context manager so it is closed whether
    extraction succeeds or fails.
    """
    text_parts = []
    try:
        with pdfplumber.open(io.BytesIO(content)) as pdf:
            for page in pdf.pages:
                page_text = page.extract_text()
                if page_text:
                    text_parts.append(page_text)
    except Exception as e:
        logger.error(f"PDF extraction failed: {e}")
        raise ParseError(f"Failed to parse PDF file: {e}") from e

    return _join_nonempty(text_parts)


def extract_text_from_docx(content: bytes) -> str:
    """Extract raw text from a DOCX buffer: paragraphs first, then table rows."""
    try:
        document = Document(io.BytesIO(content))
        parts = [p.text.strip() for p in document.paragraphs]
        for table in document.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells]
                if any(cells):
                    parts.append(" | ".join(cells))
    except Exception as e:
        logger.error(f"DOCX extraction failed: {e}")
        raise ParseError(f"Failed to parse DOCX file: {e}") from e

    return _join_nonempty(parts)


def extract_text(content: bytes, mime_type: str) -> str:
    """
    Extract plain text from an uploaded document.

    Args:
        content: Raw file bytes.
        mime_type: Declared mime type of the file.

    Returns:
        The extracted text. An empty buffer always yields "".

    Raises:
        UnsupportedFormat: mime type is not PDF, DOCX or text/*.
        ParseError: the PDF/DOCX library could not read the document.
    """
    mime_type = (mime_type or "").split(";")[0].strip().lower()
    logger.info(f"Extracting text: mime_type={mime_type!r}, size={len(content or b'')}")

    if not content:
        logger.warning("Received empty buffer; returning empty text")
        return ""

    if mime_type == PDF_MIME_TYPE:
        return extract_text_from_pdf(content)

    if mime_type == DOCX_MIME_TYPE:
        return extract_text_from_docx(content)

    if mime_type.startswith("text/"):
        return content.decode("utf-8", errors="replace")

    raise UnsupportedFormat(f"Unsupported file type: {mime_type}")
