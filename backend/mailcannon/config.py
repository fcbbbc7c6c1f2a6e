"""
Environment configuration.

Loads a local .env file once, then exposes small accessors that read
os.environ at call time so tests can patch the environment freely.

Environment variables
---------------------
ANTHROPIC_API_KEY      Required for every generation endpoint.
ANTHROPIC_MODEL        Optional model override.
SMTP_HOST / SMTP_PORT  Mail relay (default smtp.gmail.com:465).
SMTP_USER              Sender account. Legacy alias: GMAIL_EMAIL.
SMTP_PASSWORD          App password. Legacy alias: GMAIL_APP_PASSWORD.
SMTP_SENDER_NAME       Display name. Legacy alias: GMAIL_SENDER_NAME.
SMTP_TIMEOUT           Socket timeout in seconds (default 30).
STATS_FILE             Where usage counters are stored.

When SMTP_USER or SMTP_PASSWORD is missing the mailer runs in simulation
mode and never opens a connection.
"""

import os
from dataclasses import dataclass
from email.utils import formataddr
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_SMTP_HOST = "smtp.gmail.com"
DEFAULT_SMTP_PORT = 465
DEFAULT_SMTP_TIMEOUT = 30.0
DEFAULT_SENDER_NAME = "MailCannon"
DEFAULT_STATS_FILE = Path.home() / ".mailcannon" / "stats.json"


@dataclass(frozen=True)
class SmtpSettings:
    host: str
    port: int
    user: str
    password: str
    sender_name: str
    timeout: float

    @property
    def from_address(self) -> str:
        return formataddr((self.sender_name, self.user))


def _first_env(*names: str) -> str:
    """Return the first non-blank value among the given variable names."""
    for name in names:
        value = os.getenv(name, "").strip()
        if value:
            return value
    return ""


def get_anthropic_api_key() -> Optional[str]:
    return _first_env("ANTHROPIC_API_KEY") or None


def get_smtp_settings() -> Optional[SmtpSettings]:
    """
    Return the transport settings, or None when credentials are absent.

    None means "simulation mode" to the mailer.
    """
    user = _first_env("SMTP_USER", "GMAIL_EMAIL")
    password = _first_env("SMTP_PASSWORD", "GMAIL_APP_PASSWORD")
    if not user or not password:
        return None

    port_raw = _first_env("SMTP_PORT")
    timeout_raw = _first_env("SMTP_TIMEOUT")

    return SmtpSettings(
        host=_first_env("SMTP_HOST") or DEFAULT_SMTP_HOST,
        port=int(port_raw) if port_raw else DEFAULT_SMTP_PORT,
        user=user,
        password=password,
        sender_name=_first_env("SMTP_SENDER_NAME", "GMAIL_SENDER_NAME") or DEFAULT_SENDER_NAME,
        timeout=float(timeout_raw) if timeout_raw else DEFAULT_SMTP_TIMEOUT,
    )


def get_stats_path() -> Path:
    configured = _first_env("STATS_FILE")
    return Path(configured).expanduser() if configured else DEFAULT_STATS_FILE
