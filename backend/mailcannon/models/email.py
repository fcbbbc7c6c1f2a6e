"""
Pydantic models for outbound email dispatch.

Models:
  EmailAttachment  : one base64-encoded file attached to the broadcast
  SendEmailRequest : the full message handed to the mailer
  SendEmailResult  : success/failure envelope returned to the caller
"""

import base64
import binascii
import re
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, field_validator

# Same shape most form libraries accept: something@something.tld, no spaces
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(address: str) -> bool:
    return bool(EMAIL_PATTERN.match(address or ""))


class EmailAttachment(BaseModel):
    """A single attachment. content is base64, decoded only at send time."""

    content: str = Field(min_length=1)
    filename: str = Field(min_length=1)
    mime_type: str = Field(
        min_length=1,
        validation_alias=AliasChoices("mime_type", "mimeType", "type"),
    )

    @field_validator("content")
    @classmethod
    def content_must_be_base64(cls, value: str) -> str:
        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("attachment content must be base64-encoded")
        return value

    def decoded_content(self) -> bytes:
        return base64.b64decode(self.content)


class SendEmailRequest(BaseModel):
    to: list[str] = Field(min_length=1)
    subject: str = Field(min_length=1)
    html: str = Field(min_length=1)
    attachment: Optional[EmailAttachment] = None

    @field_validator("to")
    @classmethod
    def recipients_must_be_valid(cls, value: list[str]) -> list[str]:
        invalid = [addr for addr in value if not is_valid_email(addr)]
        if invalid:
            raise ValueError(f"invalid recipient address(es): {', '.join(invalid)}")
        return value

    @field_validator("subject", "html")
    @classmethod
    def must_not_be_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("subject")
    @classmethod
    def subject_must_be_single_line(cls, value: str) -> str:
        if "\r" in value or "\n" in value:
            raise ValueError("must not contain line breaks")
        return value


class SendEmailResult(BaseModel):
    """
    Result of a dispatch attempt.

    error is either a plain string (transport failures) or a list of
    field-level validation errors.
    """
    success: bool
    message: Optional[str] = None
    error: Optional[Union[str, list[dict[str, Any]]]] = None
    simulated: bool = False
