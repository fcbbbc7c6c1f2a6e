"""
Error taxonomy shared by every component.

Third-party exceptions (pdfplumber, python-docx, anthropic, smtplib) are
converted into one of these at the component boundary; nothing else is
allowed to leak out to the routers or the compose session.
"""


class MailCannonError(Exception):
    """Base class. Carries a human-readable message and a stable error_code."""

    error_code = "error"

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code


class UnsupportedFormat(MailCannonError):
    """The uploaded document's mime type has no extractor."""
    error_code = "unsupported_format"


class ParseError(MailCannonError):
    """A PDF or DOCX library failed while reading the document."""
    error_code = "parse_error"


class EmptyCv(MailCannonError):
    """A generation needs CV text but none was supplied."""
    error_code = "empty_cv"


class InvalidRecipient(MailCannonError):
    """No usable recipient address in the draft."""
    error_code = "invalid_recipient"


class PayloadValidationError(MailCannonError):
    """A request did not match its expected shape."""
    error_code = "validation_error"

    def __init__(self, message: str, errors: list | None = None):
        super().__init__(message)
        self.errors = errors or []


class TransportError(MailCannonError):
    """The mail relay refused or failed the send."""
    error_code = "transport_error"


class GenerationError(MailCannonError):
    """The language model call failed (network, rate limit, server error)."""
    error_code = "generation_error"


class InvalidCredential(GenerationError):
    """The API key is missing or was rejected."""
    error_code = "invalid_credential"


class InvalidModelOutput(GenerationError):
    """The model replied with something other than the expected JSON shape."""
    error_code = "invalid_model_output"
