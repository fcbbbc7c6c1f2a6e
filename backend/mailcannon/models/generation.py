"""
Pydantic models for the generation endpoints.

Each operation has an input model (validated before the prompt is built)
and an output model (validated against the model's JSON reply).
"""

from typing import Optional
from pydantic import BaseModel, Field, field_validator

from mailcannon.models.email import is_valid_email


class ImproveDraftInput(BaseModel):
    draft_message: str = Field(min_length=1)


class ImproveDraftOutput(BaseModel):
    improved_message: str


class CoverLetterInput(BaseModel):
    cv: str
    job_description: str
    tone: Optional[str] = None              # defaults to "neutral" in the prompt
    additional_instructions: Optional[str] = None


class CoverLetterOutput(BaseModel):
    cover_letter: str


class PersonalizedApplicationInput(BaseModel):
    """
    Input for the personalized application generator.

    The employer is inferred from the recipient's email domain, so the
    address is the only required piece of targeting information.
    """
    recipient_email: str = Field(min_length=3)
    cv: str
    job_description: Optional[str] = None
    personal_notes: Optional[str] = None

    @field_validator("recipient_email")
    @classmethod
    def recipient_must_have_domain(cls, value: str) -> str:
        value = value.strip()
        if not is_valid_email(value):
            raise ValueError("must be a valid email address with a domain")
        return value


class PersonalizedApplicationOutput(BaseModel):
    subject: str
    message: str


class TranslateMessageInput(BaseModel):
    message: str = Field(min_length=1)
    source_language: str = "Romanian"
    target_language: str = "German"


class TranslateMessageOutput(BaseModel):
    translated_message: str
