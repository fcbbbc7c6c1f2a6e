#!/usr/bin/env python3
"""
Dev helper: post a test broadcast to the local MailCannon backend.

Builds a /api/send-email payload, optionally attaching a real file (or a
generated sample CV), and POST-s it to the running backend. Without SMTP
credentials on the server the send is simulated, which makes this a safe
end-to-end smoke test.

Usage
-----
# Basic: generated sample CV, one recipient, localhost:8000
python scripts/send_test_email.py

# Several recipients and a real CV
python scripts/send_test_email.py --to "a@example.com; b@example.com" --file cv.pdf

# Print the payload without sending
python scripts/send_test_email.py --dry-run
"""

import argparse
import base64
import json
import sys
import textwrap
from pathlib import Path

import httpx

from mailcannon.services.extractor import resolve_mime_type
from mailcannon.services.mailer import build_html_body, split_recipients


def _make_sample_cv() -> bytes:
    """Return a minimal plain-text CV as bytes."""
    lines = [
        "Jane Doe - Backend Developer",
        "",
        "Experience",
        "- 2021–2025  Python developer, Acme GmbH (FastAPI, PostgreSQL)",
        "- 2018–2021  Junior developer, Globex (Django)",
        "",
        "Skills: Python, SQL, Docker, CI/CD",
    ]
    return "\n".join(lines).encode("utf-8")


def _print_response(response: httpx.Response) -> None:
    status = response.status_code
    symbol = "OK" if status == 200 else "FAIL"
    print(f"\n[{symbol}] HTTP {status}")
    try:
        print(json.dumps(response.json(), indent=2))
    except ValueError:
        print(response.text)


def main() -> int:
    parser = argparse.ArgumentParser(
        prog="send_test_email.py",
        description="Send a test broadcast to the MailCannon backend.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python scripts/send_test_email.py
              python scripts/send_test_email.py --file cv.pdf
              python scripts/send_test_email.py --url http://localhost:8001
        """),
    )
    parser.add_argument("--url", default="http://localhost:8000",
                        help="Backend base URL (default: http://localhost:8000)")
    parser.add_argument("--to", default="recruiter@example.com",
                        help="Recipients separated by commas, semicolons or new lines")
    parser.add_argument("--subject", default="Test application")
    parser.add_argument("--message", default="Hello,\n\nPlease find my CV attached.\n\nBest regards")
    parser.add_argument("--file", default=None, metavar="PATH",
                        help="File to attach. A sample CV is used if omitted.")
    parser.add_argument("--dry-run", action="store_true",
                        help="Print the payload JSON without sending it.")
    args = parser.parse_args()

    if args.file:
        file_path = Path(args.file)
        if not file_path.exists():
            print(f"ERROR: File not found: {file_path}", file=sys.stderr)
            return 1
        file_content = file_path.read_bytes()
        filename = file_path.name
        print(f"Attaching file: {file_path} ({len(file_content):,} bytes)")
    else:
        file_content = _make_sample_cv()
        filename = "sample_cv.txt"
        print(f"No --file specified; using generated sample CV ({len(file_content)} bytes)")

    recipients = split_recipients(args.to)
    payload = {
        "to": recipients,
        "subject": args.subject,
        "html": build_html_body(args.message),
        "attachment": {
            "content": base64.b64encode(file_content).decode(),
            "filename": filename,
            "mime_type": resolve_mime_type(filename, None),
        },
    }

    endpoint = f"{args.url.rstrip('/')}/api/send-email"
    print(f"\nEndpoint  : {endpoint}")
    print(f"To        : {', '.join(recipients)}")
    print(f"Subject   : {args.subject}")
    print(f"Attachment: {filename}")

    if args.dry_run:
        display = dict(payload)
        display["attachment"] = {
            **payload["attachment"],
            "content": "<base64-encoded, %d bytes>" % len(file_content),
        }
        print("\n[DRY RUN] Payload:")
        print(json.dumps(display, indent=2))
        return 0

    try:
        response = httpx.post(endpoint, json=payload, timeout=60)
    except httpx.HTTPError as e:
        print(f"\nERROR: Request failed: {e}", file=sys.stderr)
        return 1

    _print_response(response)
    return 0 if response.status_code == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
