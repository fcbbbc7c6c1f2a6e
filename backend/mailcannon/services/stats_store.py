"""
Usage counter store.

Two integers (emails sent, CVs sent) kept in a small JSON file. The file is
read once when the store is created and rewritten after every change.

The reset PIN is a shared convention to avoid accidental resets, not an
authentication mechanism.
"""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from mailcannon.models.stats import UsageStats

logger = logging.getLogger(__name__)

RESET_CODE = "1941"


class StatsStore:
    """File-backed usage counters. Inject one instance per process/session."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._stats = self._load()

    @property
    def stats(self) -> UsageStats:
        return self._stats.model_copy()

    def _load(self) -> UsageStats:
        if not self.path.exists():
            return UsageStats()
        try:
            return UsageStats.model_validate(json.loads(self.path.read_text(encoding="utf-8")))
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable stats file {self.path}: {e}")
            return UsageStats()

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(self._stats.model_dump_json(), encoding="utf-8")

    def increment_stats(self, emails_sent: int, cvs_sent: int) -> UsageStats:
        if emails_sent < 0 or cvs_sent < 0:
            raise ValueError("Counters can only be incremented by non-negative amounts")

        self._stats = UsageStats(
            cvs_sent=self._stats.cvs_sent + cvs_sent,
            emails_sent=self._stats.emails_sent + emails_sent,
        )
        self._save()
        return self.stats

    def reset_stats(self, code: str) -> bool:
        """Zero both counters if code matches RESET_CODE. Returns success."""
        if code != RESET_CODE:
            logger.info("Stats reset rejected: wrong code")
            return False

        self._stats = UsageStats()
        self._save()
        logger.info("Stats reset")
        return True
