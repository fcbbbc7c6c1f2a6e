"""
Generation service.

Fills the prompt templates, sends them to Claude and validates the JSON
reply against the operation's output model.

Every public function is a single request/response: no retries, no
streaming. Anthropic SDK errors are translated into the errors module
taxonomy before they leave this file.
"""

import json
import logging
import os
from typing import Type, TypeVar

import anthropic
from pydantic import BaseModel, ValidationError

from mailcannon.config import get_anthropic_api_key
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
from mailcannon.services.errors import (
    EmptyCv,
    GenerationError,
    InvalidCredential,
    InvalidModelOutput,
)
from mailcannon.services.prompts import (
    CONNECTION_CHECK_PROMPT,
    COVER_LETTER_PROMPT,
    IMPROVE_DRAFT_PROMPT,
    PERSONALIZED_APPLICATION_PROMPT,
    TRANSLATE_MESSAGE_PROMPT,
    render_prompt,
)

logger = logging.getLogger(__name__)

# Model configuration
MODEL = "claude-sonnet-4-5-20250929"
MAX_TOKENS = 4096

# Keeps the prompt well inside the model's context window
MAX_CV_CHARS = 100_000
TRUNCATION_MARKER = "\n\n[... CV truncated ...]"

DEFAULT_TONE = "neutral"

INVALID_CREDENTIAL_MESSAGE = (
    "The AI service rejected the API key. Check that ANTHROPIC_API_KEY is set "
    "to a valid key in your environment or .env file."
)
MISSING_CREDENTIAL_MESSAGE = (
    "ANTHROPIC_API_KEY is not configured. Set it in your environment or .env "
    "file to use the AI features."
)

OutputModel = TypeVar("OutputModel", bound=BaseModel)


def truncate_cv(cv_text: str) -> str:
    """Cut CV text to MAX_CV_CHARS and append a marker when it was longer."""
    if len(cv_text) <= MAX_CV_CHARS:
        return cv_text
    logger.info(f"Truncating CV text from {len(cv_text)} to {MAX_CV_CHARS} characters")
    return cv_text[:MAX_CV_CHARS] + TRUNCATION_MARKER


def _strip_code_fences(raw_text: str) -> str:
    json_text = raw_text.strip()
    if json_text.startswith("```"):
        lines = json_text.split("\n")
        lines = [l for l in lines if not l.strip().startswith("```")]
        json_text = "\n".join(lines).strip()
    return json_text


def _looks_like_credential_error(exc: Exception) -> bool:
    if isinstance(exc, anthropic.AuthenticationError):
        return True
    text = str(exc).lower()
    return "api key" in text or "api_key" in text or "x-api-key" in text


def _complete(prompt: str) -> str:
    """
    Send one prompt to Claude and return the raw reply text.

    Raises:
        InvalidCredential: no API key, or the key was rejected.
        GenerationError: any other SDK / network failure.
    """
    api_key = get_anthropic_api_key()
    if api_key is None:
        raise InvalidCredential(MISSING_CREDENTIAL_MESSAGE)

    model = os.getenv("ANTHROPIC_MODEL") or MODEL

    try:
        client = anthropic.Anthropic(api_key=api_key)
        response = client.messages.create(
            model=model,
            max_tokens=MAX_TOKENS,
            messages=[{"role": "user", "content": prompt}],
        )
    except anthropic.APIError as e:
        if _looks_like_credential_error(e):
            logger.warning("Anthropic API rejected the configured credential")
            raise InvalidCredential(INVALID_CREDENTIAL_MESSAGE) from e
        logger.error(f"Anthropic API call failed: {e}")
        raise GenerationError(f"AI generation failed: {e}") from e

    logger.info(
        f"Generation complete: input_tokens={response.usage.input_tokens}, "
        f"output_tokens={response.usage.output_tokens}"
    )

    if not response.content:
        raise InvalidModelOutput("The AI service returned an empty response.")
    return response.content[0].text


def generate_structured(prompt: str, output_model: Type[OutputModel]) -> OutputModel:
    """Run a prompt and validate the JSON reply against output_model."""
    raw_text = _complete(prompt)

    try:
        payload = json.loads(_strip_code_fences(raw_text))
        return output_model.model_validate(payload)
    except (json.JSONDecodeError, ValidationError) as e:
        logger.error(f"Model output did not match {output_model.__name__}: {e}")
        raise InvalidModelOutput(
            "The AI service returned a response in an unexpected format. Please try again."
        ) from e


def improve_draft(request: ImproveDraftInput) -> ImproveDraftOutput:
    """Rewrite a draft email, fixing grammar and tone, in the same language."""
    prompt = render_prompt(IMPROVE_DRAFT_PROMPT, draft_message=request.draft_message)
    return generate_structured(prompt, ImproveDraftOutput)


def generate_cover_letter(request: CoverLetterInput) -> CoverLetterOutput:
    """Write a cover letter from CV text and a job description."""
    if not request.cv.strip():
        raise EmptyCv("CV text is empty. Attach a CV before generating a cover letter.")

    prompt = render_prompt(
        COVER_LETTER_PROMPT,
        cv=truncate_cv(request.cv),
        job_description=request.job_description,
        tone=request.tone or DEFAULT_TONE,
        additional_instructions=request.additional_instructions or "",
    )
    return generate_structured(prompt, CoverLetterOutput)


def generate_personalized_application(
    request: PersonalizedApplicationInput,
) -> PersonalizedApplicationOutput:
    """
    Draft subject and message for one recipient.

    The prompt asks the model to infer the employer from the recipient's
    email domain: company domains get a tailored letter, free-mail domains
    get a generic one.
    """
    if not request.cv.strip():
        raise EmptyCv("CV text is empty. Attach a CV before generating an application.")

    prompt = render_prompt(
        PERSONALIZED_APPLICATION_PROMPT,
        recipient_email=request.recipient_email,
        cv=truncate_cv(request.cv),
        job_description=request.job_description or "",
        personal_notes=request.personal_notes or "",
    )
    return generate_structured(prompt, PersonalizedApplicationOutput)


def translate_message(request: TranslateMessageInput) -> TranslateMessageOutput:
    prompt = render_prompt(
        TRANSLATE_MESSAGE_PROMPT,
        message=request.message,
        source_language=request.source_language,
        target_language=request.target_language,
    )
    return generate_structured(prompt, TranslateMessageOutput)


def check_connection() -> str:
    """Send a trivial prompt and return the reply text. Used by the dev script."""
    return _complete(CONNECTION_CHECK_PROMPT)
