"""
Command-line front end for the compose workflow.

Usage
-----
# Send one message with a CV to three employers
mailcannon --to "hr@acme.de, jobs@globex.com; talent@initech.io" \\
           --subject "Application: Backend Developer" \\
           --message-file letter.txt --attach cv.pdf

# Let the AI write subject and body from the CV, then send
mailcannon --to jobs@acme-robotics.de --attach cv.pdf --generate \\
           --job-description-file posting.txt --notes "Open to relocation"

# Preview without sending
mailcannon ... --dry-run

# Usage counters
mailcannon --stats
mailcannon --reset-stats 1941

Sending is simulated when SMTP credentials are not configured (see
mailcannon.config).
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from mailcannon.config import get_stats_path
from mailcannon.services.compose import ComposeSession
from mailcannon.services.stats_store import StatsStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mailcannon",
        description="Send one job application with your CV to many employers.",
    )

    draft = parser.add_argument_group("draft")
    draft.add_argument("--to", default="", help="Recipients separated by commas, semicolons or new lines")
    draft.add_argument("--subject", default="")
    body = draft.add_mutually_exclusive_group()
    body.add_argument("--message", default=None, help="Message body text")
    body.add_argument("--message-file", type=Path, default=None, help="Read the message body from a file")
    draft.add_argument("--attach", type=Path, default=None, help="CV / resume file (.pdf, .docx, .txt, .md)")

    ai = parser.add_argument_group("AI assistance")
    ai.add_argument("--generate", action="store_true",
                    help="Generate subject and message tailored to the first recipient")
    ai.add_argument("--cover-letter", action="store_true",
                    help="Replace the message with a cover letter for the job description")
    ai.add_argument("--improve", action="store_true", help="Polish grammar and tone of the message")
    ai.add_argument("--translate", action="store_true", help="Translate the message")
    ai.add_argument("--source-language", default="Romanian")
    ai.add_argument("--target-language", default="German")
    job = ai.add_mutually_exclusive_group()
    job.add_argument("--job-description", default=None)
    job.add_argument("--job-description-file", type=Path, default=None)
    ai.add_argument("--notes", default=None, help="Personal notes for --generate")
    ai.add_argument("--tone", default=None, help="Tone for --cover-letter (default: neutral)")
    ai.add_argument("--instructions", default=None, help="Extra instructions for --cover-letter")

    parser.add_argument("--dry-run", action="store_true", help="Print the draft instead of sending")
    parser.add_argument("--stats", action="store_true", help="Show usage counters and exit")
    parser.add_argument("--reset-stats", metavar="CODE", default=None, help="Reset usage counters")
    parser.add_argument("--stats-file", type=Path, default=None, help="Override STATS_FILE")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def _read_optional(text: Optional[str], path: Optional[Path]) -> Optional[str]:
    if path is not None:
        return path.read_text(encoding="utf-8")
    return text


def _print_notifications(session: ComposeSession) -> None:
    for note in session.notifications:
        prefix = "✗" if note.is_error else "✓"
        print(f"{prefix} {note.title}: {note.description}")


async def run(args: argparse.Namespace, store: StatsStore) -> int:
    session = ComposeSession(stats=store)
    session.draft.recipients_raw = args.to
    session.draft.subject = args.subject
    session.draft.message = _read_optional(args.message, args.message_file) or ""

    if args.attach is not None:
        if not session.drop_attachment(args.attach):
            _print_notifications(session)
            return 1

    job_description = _read_optional(args.job_description, args.job_description_file)

    if args.generate:
        await session.generate_application(job_description=job_description, personal_notes=args.notes)
    if args.cover_letter:
        await session.generate_cover_letter(
            job_description=job_description or "",
            tone=args.tone,
            additional_instructions=args.instructions,
        )
    if args.improve:
        await session.improve_message()
    if args.translate:
        await session.translate_message(args.source_language, args.target_language)

    if any(note.is_error for note in session.notifications):
        _print_notifications(session)
        return 1

    if args.dry_run:
        print(f"To:      {', '.join(session.draft.recipients)}")
        print(f"Subject: {session.draft.subject}")
        if session.attachment is not None:
            print(f"Attach:  {session.attachment.filename} ({session.attachment.mime_type})")
        print()
        print(session.draft.message)
        _print_notifications(session)
        return 0

    result = await session.submit()
    _print_notifications(session)
    return 0 if result is not None and result.success else 1


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    store = StatsStore(args.stats_file or get_stats_path())

    if args.stats:
        stats = store.stats
        print(f"Emails sent: {stats.emails_sent}")
        print(f"CVs sent:    {stats.cvs_sent}")
        return 0

    if args.reset_stats is not None:
        if store.reset_stats(args.reset_stats):
            print("Stats reset.")
            return 0
        print("Invalid code. Stats were not reset.", file=sys.stderr)
        return 1

    return asyncio.run(run(args, store))


if __name__ == "__main__":
    sys.exit(main())
