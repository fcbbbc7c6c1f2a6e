"""
AI generation endpoints.

  POST /api/generate/improve-draft             ImproveDraftInput → ImproveDraftOutput
  POST /api/generate/cover-letter              CoverLetterInput → CoverLetterOutput
  POST /api/generate/personalized-application  PersonalizedApplicationInput → PersonalizedApplicationOutput
  POST /api/generate/translate                 TranslateMessageInput → TranslateMessageOutput

Errors are returned as {"error": str}:
  400  empty CV text
  401  missing or rejected ANTHROPIC_API_KEY
  502  model/network failure or malformed model output
"""

import logging
from typing import Callable

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from mailcannon.models.generation import (
    CoverLetterInput,
    CoverLetterOutput,
    ImproveDraftInput,
    ImproveDraftOutput,
    PersonalizedApplicationInput,
    PersonalizedApplicationOutput,
    TranslateMessageInput,
    TranslateMessageOutput,
)
from mailcannon.services import generator
from mailcannon.services.errors import EmptyCv, GenerationError, InvalidCredential

router = APIRouter()

logger = logging.getLogger(__name__)


def _run(operation: Callable, request):
    """Call a generator operation and map taxonomy errors to HTTP responses."""
    try:
        return operation(request)
    except EmptyCv as e:
        return JSONResponse(status_code=400, content={"error": e.message})
    except InvalidCredential as e:
        return JSONResponse(status_code=401, content={"error": e.message})
    except GenerationError as e:
        return JSONResponse(status_code=502, content={"error": e.message})
    except Exception as e:
        name = getattr(operation, "__name__", "generation")
        logger.error(f"{name} failed: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Generation failed"})


@router.post("/improve-draft", response_model=ImproveDraftOutput)
def improve_draft(request: ImproveDraftInput):
    return _run(generator.improve_draft, request)


@router.post("/cover-letter", response_model=CoverLetterOutput)
def cover_letter(request: CoverLetterInput):
    return _run(generator.generate_cover_letter, request)


@router.post("/personalized-application", response_model=PersonalizedApplicationOutput)
def personalized_application(request: PersonalizedApplicationInput):
    """
    Draft a subject and message for one recipient. The employer is inferred
    from the recipient address's domain.
    """
    return _run(generator.generate_personalized_application, request)


@router.post("/translate", response_model=TranslateMessageOutput)
def translate(request: TranslateMessageInput):
    return _run(generator.translate_message, request)
