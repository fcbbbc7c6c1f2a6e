"""
CV text extraction endpoint.

  POST /api/extract-cv-text   multipart form with one "file" field
                              → {"text": str} or {"error": str}
"""

import logging
from typing import Optional

from fastapi import APIRouter, File, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from mailcannon.services.errors import ParseError, UnsupportedFormat
from mailcannon.services.extractor import extract_text, resolve_mime_type

router = APIRouter()

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/extract-cv-text")
async def extract_cv_text(file: Optional[UploadFile] = File(None)):
    """
    Extract plain text from an uploaded CV (PDF, DOCX, or any text/* file).

    Returns 400 for a missing or empty file, 415 for an unsupported type and
    422 when the document cannot be parsed.
    """
    if file is None:
        return _error(400, "No file provided")

    content = await file.read()
    mime_type = resolve_mime_type(file.filename, file.content_type)

    logger.info(
        f"Extract request received: filename={file.filename!r}, "
        f"content_type={file.content_type!r}, resolved={mime_type!r}, size={len(content)}"
    )

    if not content:
        return _error(400, "The uploaded file is empty")

    try:
        text = await run_in_threadpool(extract_text, content, mime_type)
    except UnsupportedFormat as e:
        return _error(415, e.message)
    except ParseError as e:
        return _error(422, e.message)
    except Exception as e:
        logger.error(f"Extraction failed for {file.filename!r}: {e}", exc_info=True)
        return _error(500, "Failed to extract text")

    return {"text": text}
