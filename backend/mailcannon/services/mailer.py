"""
Bulk email dispatch service.

One call to send_email() produces exactly one outbound message addressed
to every recipient at once; it is not a per-recipient loop. The transport
is an authenticated SMTP relay (Gmail by default, see mailcannon.config).

When no SMTP credentials are configured the service runs in simulation
mode: the request is validated and logged, nothing is sent, and the
result is flagged simulated=True.
"""

import html
import logging
import re
import smtplib
from email.message import EmailMessage
from typing import Union

from pydantic import ValidationError

from mailcannon.config import SmtpSettings, get_smtp_settings
from mailcannon.models.email import SendEmailRequest, SendEmailResult
from mailcannon.services.errors import TransportError

logger = logging.getLogger(__name__)

_RECIPIENT_SEPARATORS = re.compile(r"[\n,;]+")

# Port 465 speaks TLS from the first byte; anything else upgrades via STARTTLS
_IMPLICIT_TLS_PORT = 465

AUTH_FAILED_MESSAGE = (
    "The mail server rejected the configured credentials. "
    "Check the SMTP settings in your .env file."
)


def split_recipients(raw: str) -> list[str]:
    """Split raw user input on newlines, commas and semicolons; drop blanks."""
    return [part.strip() for part in _RECIPIENT_SEPARATORS.split(raw or "") if part.strip()]


def build_html_body(text: str) -> str:
    """
    Convert user-entered plain text to an HTML body.

    Escaping happens before the <br> conversion so the only markup in the
    result is the line breaks added here.
    """
    normalized = (text or "").replace("\r\n", "\n").replace("\r", "\n")
    return html.escape(normalized, quote=True).replace("\n", "<br>")


def _validation_errors(exc: ValidationError) -> list[dict]:
    return [
        {
            "field": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]


def _build_message(request: SendEmailRequest, settings: SmtpSettings) -> EmailMessage:
    """
    Assemble the MIME message.

    Raises:
        TransportError: a header or attachment value the email package refuses.
    """
    try:
        return _assemble(request, settings)
    except (ValueError, TypeError) as e:
        logger.error(f"Could not build email message: {e}")
        raise TransportError(f"Failed to build email: {e}", "message_build_failed") from e


def _assemble(request: SendEmailRequest, settings: SmtpSettings) -> EmailMessage:
    message = EmailMessage()
    message["From"] = settings.from_address
    message["To"] = ", ".join(request.to)
    message["Subject"] = request.subject
    message.set_content(request.html, subtype="html")

    if request.attachment is not None:
        maintype, _, subtype = request.attachment.mime_type.partition("/")
        if not subtype:
            maintype, subtype = "application", "octet-stream"
        message.add_attachment(
            request.attachment.decoded_content(),
            maintype=maintype,
            subtype=subtype,
            filename=request.attachment.filename,
        )

    return message


def _deliver(message: EmailMessage, settings: SmtpSettings) -> None:
    """
    Open one SMTP session, authenticate and hand over the message.

    Raises:
        TransportError: any smtplib or socket failure. Authentication
            failures carry a generic message so credentials never leak.
    """
    try:
        if settings.port == _IMPLICIT_TLS_PORT:
            with smtplib.SMTP_SSL(settings.host, settings.port, timeout=settings.timeout) as server:
                server.login(settings.user, settings.password)
                server.send_message(message)
        else:
            with smtplib.SMTP(settings.host, settings.port, timeout=settings.timeout) as server:
                server.starttls()
                server.login(settings.user, settings.password)
                server.send_message(message)
    except smtplib.SMTPAuthenticationError as e:
        logger.error("SMTP authentication failed", exc_info=True)
        raise TransportError(AUTH_FAILED_MESSAGE, "transport_auth_failed") from e
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"SMTP send failed: {e}", exc_info=True)
        raise TransportError(f"Failed to send email: {e}") from e


def send_email(payload: Union[SendEmailRequest, dict]) -> SendEmailResult:
    """
    Validate and dispatch one broadcast email.

    Args:
        payload: SendEmailRequest or an equivalent dict
                 ({to, subject, html, attachment?}).

    Returns:
        SendEmailResult. Never raises for validation or transport problems;
        the caller always gets a success/failure signal.
    """
    try:
        request = (
            payload
            if isinstance(payload, SendEmailRequest)
            else SendEmailRequest.model_validate(payload)
        )
    except ValidationError as e:
        logger.warning(f"Rejected send request: {e.error_count()} validation error(s)")
        return SendEmailResult(success=False, error=_validation_errors(e))

    recipient_count = len(request.to)
    settings = get_smtp_settings()

    if settings is None:
        logger.warning("SMTP_USER or SMTP_PASSWORD is not set. Email not sent.")
        logger.info(f"Simulating email sending for: {request.to}")
        return SendEmailResult(
            success=True,
            message=f"Simulated sending to {recipient_count} recipient(s). No SMTP credentials configured.",
            simulated=True,
        )

    try:
        message = _build_message(request, settings)
        _deliver(message, settings)
    except TransportError as e:
        return SendEmailResult(success=False, error=e.message)

    logger.info(f"Email sent to {recipient_count} recipient(s)")
    return SendEmailResult(success=True, message=f"Email sent to {recipient_count} recipient(s).")
