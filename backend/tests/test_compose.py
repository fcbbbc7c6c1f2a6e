"""
Tests for the compose session (orchestration layer).

Generator and mailer calls are patched in the compose module; files are
real temporary files so the lazy read path is exercised end to end.
"""

import asyncio
import base64

import pytest

from mailcannon.models.email import SendEmailResult
from mailcannon.models.generation import (
    CoverLetterOutput,
    ImproveDraftOutput,
    PersonalizedApplicationOutput,
    TranslateMessageOutput,
)
from mailcannon.services.compose import ComposeSession, PendingAttachment
from mailcannon.services.errors import GenerationError, InvalidCredential
from mailcannon.services.stats_store import StatsStore

CV_TEXT = "Jane Doe\nBackend developer, 5 years of Python"


@pytest.fixture
def store(tmp_path):
    return StatsStore(tmp_path / "stats.json")


@pytest.fixture
def cv_file(tmp_path):
    path = tmp_path / "cv.txt"
    path.write_text(CV_TEXT, encoding="utf-8")
    return path


@pytest.fixture
def session(store):
    return ComposeSession(stats=store)


@pytest.fixture
def ready_session(session, cv_file):
    session.draft.recipients_raw = "hr@acme.de;\n jobs@globex.com ,"
    session.draft.subject = "Application"
    session.draft.message = "Hello <team>\nSee attached."
    session.select_attachment(cv_file)
    return session


def _errors(session: ComposeSession) -> list[str]:
    return [n.title for n in session.notifications if n.is_error]


class TestAttachmentLifecycle:

    def test_select_does_not_read_file(self, session, tmp_path):
        missing = tmp_path / "not-yet-written.pdf"

        attachment = session.select_attachment(missing)

        assert attachment.filename == "not-yet-written.pdf"
        assert attachment.mime_type == "application/pdf"
        assert session.notifications == []

    def test_select_replaces_previous(self, session, tmp_path):
        session.select_attachment(tmp_path / "a.pdf")
        session.select_attachment(tmp_path / "b.docx")
        assert session.attachment.filename == "b.docx"

    def test_drop_rejects_unknown_extension(self, session, tmp_path):
        accepted = session.drop_attachment(tmp_path / "photo.png")

        assert accepted is False
        assert session.attachment is None
        assert _errors(session) == ["Invalid file type"]

    @pytest.mark.parametrize("name", ["cv.txt", "cv.MD", "cv.pdf", "cv.doc", "cv.docx"])
    def test_drop_accepts_known_extensions(self, session, tmp_path, name):
        assert session.drop_attachment(tmp_path / name) is True
        assert session.attachment.filename == name

    def test_remove(self, session, cv_file):
        session.select_attachment(cv_file)
        session.remove_attachment()
        assert session.attachment is None

    @pytest.mark.asyncio
    async def test_reads_are_lazy_and_awaitable(self, cv_file):
        attachment = PendingAttachment.from_path(cv_file)

        assert await attachment.read_bytes() == CV_TEXT.encode()
        assert await attachment.read_base64() == base64.b64encode(CV_TEXT.encode()).decode()
        assert await attachment.read_text() == CV_TEXT


class TestSubmit:

    @pytest.mark.asyncio
    async def test_success_sends_once_and_counts(self, ready_session, store, mocker):
        send = mocker.patch(
            "mailcannon.services.compose.send_email",
            return_value=SendEmailResult(success=True, message="Email sent to 2 recipient(s)."),
        )

        result = await ready_session.submit()

        assert result.success is True
        send.assert_called_once()
        payload = send.call_args[0][0]
        assert payload["to"] == ["hr@acme.de", "jobs@globex.com"]
        assert payload["subject"] == "Application"
        assert payload["html"] == "Hello &lt;team&gt;<br>See attached."
        assert payload["attachment"] == {
            "content": base64.b64encode(CV_TEXT.encode()).decode(),
            "filename": "cv.txt",
            "mime_type": "text/plain",
        }
        assert store.stats.emails_sent == 2
        assert store.stats.cvs_sent == 1
        assert ready_session.notifications[-1].title == "Emails Sent!"
        assert ready_session.is_sending is False

    @pytest.mark.asyncio
    async def test_requires_attachment(self, ready_session, mocker):
        send = mocker.patch("mailcannon.services.compose.send_email")
        ready_session.remove_attachment()

        assert await ready_session.submit() is None

        send.assert_not_called()
        assert _errors(ready_session) == ["No CV attached"]

    @pytest.mark.asyncio
    async def test_requires_recipients(self, ready_session, mocker):
        send = mocker.patch("mailcannon.services.compose.send_email")
        ready_session.draft.recipients_raw = " ,;\n "

        assert await ready_session.submit() is None

        send.assert_not_called()
        assert _errors(ready_session) == ["No recipients"]
        assert ready_session.is_sending is False

    @pytest.mark.asyncio
    async def test_requires_subject(self, ready_session, mocker):
        send = mocker.patch("mailcannon.services.compose.send_email")
        ready_session.draft.subject = "  "

        await ready_session.submit()

        send.assert_not_called()
        assert ready_session.notifications[-1].description == "Subject cannot be empty."

    @pytest.mark.asyncio
    async def test_transport_failure_is_reported(self, ready_session, store, mocker):
        mocker.patch(
            "mailcannon.services.compose.send_email",
            return_value=SendEmailResult(success=False, error="Failed to send email: 550 mailbox unavailable"),
        )

        result = await ready_session.submit()

        assert result.success is False
        note = ready_session.notifications[-1]
        assert note.title == "Failed to send emails"
        assert note.description == "Failed to send email: 550 mailbox unavailable"
        assert store.stats.emails_sent == 0

    @pytest.mark.asyncio
    async def test_validation_errors_are_joined(self, ready_session, mocker):
        mocker.patch(
            "mailcannon.services.compose.send_email",
            return_value=SendEmailResult(
                success=False,
                error=[{"field": "to", "message": "invalid recipient address(es): x"}],
            ),
        )

        await ready_session.submit()

        assert ready_session.notifications[-1].description == "to: invalid recipient address(es): x"

    @pytest.mark.asyncio
    async def test_unreadable_attachment_clears_busy_flag(self, ready_session, tmp_path, mocker):
        send = mocker.patch("mailcannon.services.compose.send_email")
        ready_session.select_attachment(tmp_path / "deleted.pdf")

        assert await ready_session.submit() is None

        send.assert_not_called()
        assert ready_session.is_sending is False
        assert "Could not read the attachment" in ready_session.notifications[-1].description

    @pytest.mark.asyncio
    async def test_unexpected_error_clears_busy_flag(self, ready_session, mocker):
        mocker.patch("mailcannon.services.compose.send_email", side_effect=RuntimeError("boom"))

        assert await ready_session.submit() is None

        assert ready_session.is_sending is False
        assert _errors(ready_session) == ["Error"]

    @pytest.mark.asyncio
    async def test_simulated_send_without_credentials(self, ready_session, store, monkeypatch):
        for name in ("SMTP_USER", "SMTP_PASSWORD", "GMAIL_EMAIL", "GMAIL_APP_PASSWORD"):
            monkeypatch.delenv(name, raising=False)

        result = await ready_session.submit()

        assert result.success is True
        assert result.simulated is True
        assert store.stats.emails_sent == 2

    @pytest.mark.asyncio
    async def test_stats_write_failure_still_reports_sent(self, ready_session, store, mocker):
        send = mocker.patch(
            "mailcannon.services.compose.send_email",
            return_value=SendEmailResult(success=True, message="Email sent to 2 recipient(s)."),
        )
        mocker.patch.object(store, "_save", side_effect=PermissionError(13, "Permission denied"))

        result = await ready_session.submit()

        assert result is not None
        assert result.success is True
        send.assert_called_once()
        titles = [n.title for n in ready_session.notifications]
        assert titles == ["Emails Sent!", "Stats not updated"]
        assert not any("Could not read the attachment" in n.description for n in ready_session.notifications)
        assert ready_session.is_sending is False


class TestImprove:

    @pytest.mark.asyncio
    async def test_replaces_message(self, ready_session, mocker):
        improve = mocker.patch(
            "mailcannon.services.compose.improve_draft",
            return_value=ImproveDraftOutput(improved_message="Dear team, please find my CV attached."),
        )

        await ready_session.improve_message()

        assert improve.call_args[0][0].draft_message == "Hello <team>\nSee attached."
        assert ready_session.draft.message == "Dear team, please find my CV attached."
        assert ready_session.is_improving is False

    @pytest.mark.asyncio
    async def test_empty_message_is_not_sent(self, session, mocker):
        improve = mocker.patch("mailcannon.services.compose.improve_draft")

        await session.improve_message()

        improve.assert_not_called()
        assert _errors(session) == ["Empty Message"]

    @pytest.mark.asyncio
    async def test_failure_keeps_message_and_clears_flag(self, ready_session, mocker):
        mocker.patch(
            "mailcannon.services.compose.improve_draft",
            side_effect=GenerationError("AI generation failed: overloaded"),
        )

        await ready_session.improve_message()

        assert ready_session.draft.message == "Hello <team>\nSee attached."
        assert ready_session.is_improving is False
        assert ready_session.notifications[-1].description == "AI generation failed: overloaded"

    @pytest.mark.asyncio
    async def test_only_one_ai_call_in_flight(self, ready_session, mocker):
        improve = mocker.patch(
            "mailcannon.services.compose.improve_draft",
            return_value=ImproveDraftOutput(improved_message="Better"),
        )
        translate = mocker.patch("mailcannon.services.compose.translate_message")

        await asyncio.gather(
            ready_session.improve_message(),
            ready_session.improve_message(),
            ready_session.translate_message(),
        )

        improve.assert_called_once()
        translate.assert_not_called()


class TestGenerateApplication:

    @pytest.mark.asyncio
    async def test_fills_subject_and_message(self, ready_session, mocker):
        generate = mocker.patch(
            "mailcannon.services.compose.generate_personalized_application",
            return_value=PersonalizedApplicationOutput(subject="Backend role at Acme", message="Dear Acme team"),
        )

        await ready_session.generate_application(
            job_description="Backend developer", personal_notes="Open to relocation"
        )

        request = generate.call_args[0][0]
        assert request.recipient_email == "hr@acme.de"
        assert request.cv == CV_TEXT
        assert request.job_description == "Backend developer"
        assert request.personal_notes == "Open to relocation"
        assert ready_session.draft.subject == "Backend role at Acme"
        assert ready_session.draft.message == "Dear Acme team"
        assert ready_session.is_generating is False

    @pytest.mark.asyncio
    async def test_needs_a_recipient(self, ready_session, mocker):
        generate = mocker.patch("mailcannon.services.compose.generate_personalized_application")
        ready_session.draft.recipients_raw = ""

        await ready_session.generate_application()

        generate.assert_not_called()
        assert ready_session.is_generating is False
        assert _errors(ready_session) == ["Generation Error"]

    @pytest.mark.asyncio
    async def test_first_recipient_must_be_an_address(self, ready_session, mocker):
        generate = mocker.patch("mailcannon.services.compose.generate_personalized_application")
        ready_session.draft.recipients_raw = "acme-hr, jobs@globex.com"

        await ready_session.generate_application()

        generate.assert_not_called()
        assert ready_session.notifications[-1].description == "acme-hr is not a valid email address."

    @pytest.mark.asyncio
    async def test_needs_an_attachment(self, ready_session, mocker):
        generate = mocker.patch("mailcannon.services.compose.generate_personalized_application")
        ready_session.remove_attachment()

        await ready_session.generate_application()

        generate.assert_not_called()
        assert "Attach your CV" in ready_session.notifications[-1].description

    @pytest.mark.asyncio
    async def test_blank_cv_text_is_reported(self, ready_session, tmp_path, mocker):
        generate = mocker.patch("mailcannon.services.compose.generate_personalized_application")
        blank = tmp_path / "blank.txt"
        blank.write_text("   \n")
        ready_session.select_attachment(blank)

        await ready_session.generate_application()

        generate.assert_not_called()
        assert "No text could be extracted from blank.txt" in ready_session.notifications[-1].description

    @pytest.mark.asyncio
    async def test_invalid_credential_message_is_shown(self, ready_session, mocker):
        mocker.patch(
            "mailcannon.services.compose.generate_personalized_application",
            side_effect=InvalidCredential("ANTHROPIC_API_KEY is not configured."),
        )

        await ready_session.generate_application()

        assert ready_session.notifications[-1].description == "ANTHROPIC_API_KEY is not configured."
        assert ready_session.draft.subject == "Application"


class TestCoverLetterAndTranslate:

    @pytest.mark.asyncio
    async def test_cover_letter_replaces_message(self, ready_session, mocker):
        generate = mocker.patch(
            "mailcannon.services.compose.generate_cover_letter",
            return_value=CoverLetterOutput(cover_letter="Dear Hiring Manager, ..."),
        )

        await ready_session.generate_cover_letter("Backend developer", tone="formal")

        request = generate.call_args[0][0]
        assert request.cv == CV_TEXT
        assert request.tone == "formal"
        assert ready_session.draft.message == "Dear Hiring Manager, ..."

    @pytest.mark.asyncio
    async def test_translate_replaces_message(self, ready_session, mocker):
        translate = mocker.patch(
            "mailcannon.services.compose.translate_message",
            return_value=TranslateMessageOutput(translated_message="Hallo Team"),
        )

        await ready_session.translate_message("English", "German")

        request = translate.call_args[0][0]
        assert request.source_language == "English"
        assert request.target_language == "German"
        assert ready_session.draft.message == "Hallo Team"
        assert ready_session.notifications[-1].description == "Your message has been translated to German."
