"""
Compose session: the orchestration layer between a front end and the
extractor, generator and mailer services.

A session owns one draft and at most one pending attachment. Every action
is a coroutine; blocking library calls run in a worker thread so the event
loop stays responsive. Busy flags stop the same class of action from being
started twice, and are always cleared in a finally block so a failure can
never leave the session stuck in a busy state.

Results are reported as Notification objects rather than exceptions; the
front end decides how to display them.
"""

import asyncio
import base64
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from mailcannon.models.email import SendEmailResult, is_valid_email
from mailcannon.models.generation import (
    CoverLetterInput,
    ImproveDraftInput,
    PersonalizedApplicationInput,
    TranslateMessageInput,
)
from mailcannon.services.errors import (
    EmptyCv,
    InvalidRecipient,
    MailCannonError,
    PayloadValidationError,
)
from mailcannon.services.extractor import extract_text, resolve_mime_type
from mailcannon.services.generator import (
    generate_cover_letter,
    generate_personalized_application,
    improve_draft,
    translate_message,
)
from mailcannon.services.mailer import build_html_body, send_email, split_recipients
from mailcannon.services.stats_store import StatsStore

logger = logging.getLogger(__name__)

VALID_ATTACHMENT_EXTENSIONS = (".txt", ".md", ".pdf", ".doc", ".docx")

GENERIC_SEND_ERROR = "An unexpected error occurred. Check the server logs for details."


@dataclass
class Notification:
    title: str
    description: str
    variant: str = "default"    # "default" | "destructive"

    @property
    def is_error(self) -> bool:
        return self.variant == "destructive"


@dataclass
class PendingAttachment:
    """
    A file chosen by the user. Content is only read when it is needed,
    never at selection time.
    """
    path: Path
    filename: str
    mime_type: str

    @classmethod
    def from_path(cls, path: Path, mime_type: Optional[str] = None) -> "PendingAttachment":
        path = Path(path)
        return cls(
            path=path,
            filename=path.name,
            mime_type=resolve_mime_type(path.name, mime_type),
        )

    async def read_bytes(self) -> bytes:
        return await asyncio.to_thread(self.path.read_bytes)

    async def read_base64(self) -> str:
        content = await self.read_bytes()
        return base64.b64encode(content).decode("ascii")

    async def read_text(self) -> str:
        content = await self.read_bytes()
        return await asyncio.to_thread(extract_text, content, self.mime_type)


@dataclass
class EmailDraft:
    recipients_raw: str = ""
    subject: str = ""
    message: str = ""

    @property
    def recipients(self) -> list[str]:
        return split_recipients(self.recipients_raw)


@dataclass
class ComposeSession:
    stats: StatsStore
    draft: EmailDraft = field(default_factory=EmailDraft)
    attachment: Optional[PendingAttachment] = None
    notifications: list[Notification] = field(default_factory=list)

    is_sending: bool = False
    is_improving: bool = False
    is_generating: bool = False
    is_translating: bool = False

    @property
    def ai_busy(self) -> bool:
        """Only one AI call may be in flight per session."""
        return self.is_improving or self.is_generating or self.is_translating

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _notify(self, title: str, description: str, variant: str = "default") -> None:
        self.notifications.append(Notification(title, description, variant))

    def _notify_error(self, title: str, description: str) -> None:
        self._notify(title, description, "destructive")

    # ------------------------------------------------------------------
    # Attachment lifecycle
    # ------------------------------------------------------------------

    def select_attachment(self, path: Path, mime_type: Optional[str] = None) -> PendingAttachment:
        """Select (or replace) the attachment from a file picker."""
        self.attachment = PendingAttachment.from_path(path, mime_type)
        logger.info(f"Attachment selected: {self.attachment.filename} ({self.attachment.mime_type})")
        return self.attachment

    def drop_attachment(self, path: Path, mime_type: Optional[str] = None) -> bool:
        """
        Handle a drag-and-drop. Unlike the file picker, dropped files are
        checked by extension first.
        """
        suffix = Path(path).suffix.lower()
        if suffix not in VALID_ATTACHMENT_EXTENSIONS:
            self._notify_error(
                "Invalid file type",
                "Please upload a .txt, .md, .pdf, .doc, or .docx file.",
            )
            return False
        self.select_attachment(path, mime_type)
        return True

    def remove_attachment(self) -> None:
        self.attachment = None

    async def _read_cv_text(self) -> str:
        if self.attachment is None:
            raise EmptyCv("Attach your CV first so the AI can read it.")
        text = await self.attachment.read_text()
        if not text.strip():
            raise EmptyCv(f"No text could be extracted from {self.attachment.filename}.")
        return text

    # ------------------------------------------------------------------
    # AI actions
    # ------------------------------------------------------------------

    async def improve_message(self) -> None:
        if self.ai_busy:
            return
        if not self.draft.message.strip():
            self._notify_error("Empty Message", "Please write a message to improve.")
            return

        self.is_improving = True
        try:
            result = await asyncio.to_thread(
                improve_draft, ImproveDraftInput(draft_message=self.draft.message)
            )
            self.draft.message = result.improved_message
            self._notify("Message Improved!", "Your message has been rewritten.")
        except MailCannonError as e:
            self._notify_error("Improvement Error", e.message)
        except Exception:
            logger.exception("Unexpected error while improving message")
            self._notify_error("Improvement Error", "Failed to improve the message. Please try again.")
        finally:
            self.is_improving = False

    async def translate_message(
        self, source_language: str = "Romanian", target_language: str = "German"
    ) -> None:
        if self.ai_busy:
            return
        if not self.draft.message.strip():
            self._notify_error("Empty Message", "Please write a message to translate.")
            return

        self.is_translating = True
        try:
            result = await asyncio.to_thread(
                translate_message,
                TranslateMessageInput(
                    message=self.draft.message,
                    source_language=source_language,
                    target_language=target_language,
                ),
            )
            self.draft.message = result.translated_message
            self._notify(
                "Message Translated!",
                f"Your message has been translated to {target_language}.",
            )
        except MailCannonError as e:
            self._notify_error("Translation Error", e.message)
        except Exception:
            logger.exception("Unexpected error while translating message")
            self._notify_error("Translation Error", "Failed to translate the message. Please try again.")
        finally:
            self.is_translating = False

    async def generate_application(
        self,
        job_description: Optional[str] = None,
        personal_notes: Optional[str] = None,
    ) -> None:
        """Fill subject and message with an application tailored to the first recipient."""
        if self.ai_busy:
            return

        self.is_generating = True
        try:
            recipients = self.draft.recipients
            if not recipients:
                raise InvalidRecipient("Enter at least one recipient so the employer can be inferred.")
            if not is_valid_email(recipients[0]):
                raise InvalidRecipient(f"{recipients[0]} is not a valid email address.")
            cv_text = await self._read_cv_text()

            result = await asyncio.to_thread(
                generate_personalized_application,
                PersonalizedApplicationInput(
                    recipient_email=recipients[0],
                    cv=cv_text,
                    job_description=job_description,
                    personal_notes=personal_notes,
                ),
            )
            self.draft.subject = result.subject
            self.draft.message = result.message
            self._notify("Application Generated!", "Review the subject and message before sending.")
        except MailCannonError as e:
            self._notify_error("Generation Error", e.message)
        except Exception:
            logger.exception("Unexpected error while generating application")
            self._notify_error("Generation Error", "Failed to generate the application. Please try again.")
        finally:
            self.is_generating = False

    async def generate_cover_letter(
        self,
        job_description: str,
        tone: Optional[str] = None,
        additional_instructions: Optional[str] = None,
    ) -> None:
        if self.ai_busy:
            return

        self.is_generating = True
        try:
            cv_text = await self._read_cv_text()
            result = await asyncio.to_thread(
                generate_cover_letter,
                CoverLetterInput(
                    cv=cv_text,
                    job_description=job_description,
                    tone=tone,
                    additional_instructions=additional_instructions,
                ),
            )
            self.draft.message = result.cover_letter
            self._notify("Cover Letter Generated!", "The message body now holds your cover letter.")
        except MailCannonError as e:
            self._notify_error("Generation Error", e.message)
        except Exception:
            logger.exception("Unexpected error while generating cover letter")
            self._notify_error("Generation Error", "Failed to generate the cover letter. Please try again.")
        finally:
            self.is_generating = False

    # ------------------------------------------------------------------
    # Send
    # ------------------------------------------------------------------

    def _validated_recipients(self) -> list[str]:
        recipients = self.draft.recipients
        if not recipients:
            raise InvalidRecipient("Please enter at least one recipient email.")
        return recipients

    def _check_draft(self) -> None:
        if not self.draft.subject.strip():
            raise PayloadValidationError("Subject cannot be empty.")
        if not self.draft.message.strip():
            raise PayloadValidationError("Message body cannot be empty.")

    @staticmethod
    def _describe_failure(result: SendEmailResult) -> str:
        if isinstance(result.error, str):
            return result.error
        if result.error:
            return "; ".join(f"{err['field']}: {err['message']}" for err in result.error)
        return GENERIC_SEND_ERROR

    def _record_send(self, recipient_count: int) -> None:
        """Bump the counters after a send. A failed write never undoes the send."""
        try:
            self.stats.increment_stats(recipient_count, 1)
        except (OSError, ValueError) as e:
            logger.error(f"Emails were sent but the usage counters could not be saved: {e}")
            self._notify_error(
                "Stats not updated",
                "Your emails were sent, but the usage counters could not be saved.",
            )

    async def submit(self) -> Optional[SendEmailResult]:
        """
        Send the draft to every recipient in one dispatch.

        Returns the dispatcher result, or None when the send was blocked
        before reaching the dispatcher.
        """
        if self.is_sending:
            return None
        if self.attachment is None:
            self._notify_error("No CV attached", "Please attach your CV before sending.")
            return None

        self.is_sending = True
        try:
            recipients = self._validated_recipients()
            self._check_draft()

            attachment = self.attachment
            content = await attachment.read_base64()

            result = await asyncio.to_thread(
                send_email,
                {
                    "to": recipients,
                    "subject": self.draft.subject,
                    "html": build_html_body(self.draft.message),
                    "attachment": {
                        "content": content,
                        "filename": attachment.filename,
                        "mime_type": attachment.mime_type,
                    },
                },
            )
        except InvalidRecipient as e:
            self._notify_error("No recipients", e.message)
        except MailCannonError as e:
            self._notify_error("Error", e.message)
        except OSError as e:
            logger.error(f"Could not read attachment: {e}")
            self._notify_error("Error", f"Could not read the attachment: {e.strerror or e}")
        except Exception:
            logger.exception("Sending email failed")
            self._notify_error(
                "Error",
                "An error occurred while sending the email. "
                "Check the SMTP settings in your .env file.",
            )
        else:
            if not result.success:
                self._notify_error("Failed to send emails", self._describe_failure(result))
                return result
            self._notify("Emails Sent!", result.message or "")
            self._record_send(len(recipients))
            return result
        finally:
            self.is_sending = False
        return None
