"""Append-only emergency error log.

Implements ErrorLogPort with a single shared text file, one line per
failed recording: ``<timestamp> | <test name> | <error>``.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from tally.core.models import format_instant
from tally.core.ports import ErrorLogPort

logger = logging.getLogger(__name__)

ERROR_LOG_FILE = "error-log.txt"


class FileErrorLog(ErrorLogPort):
    """Appends diagnostic lines to ``<base>/error-log.txt``."""

    def __init__(self, base_dir: str, clock: Callable[[], datetime] | None = None):
        self.path = Path(base_dir) / ERROR_LOG_FILE
        self.clock = clock or (lambda: datetime.now(UTC))

    @staticmethod
    def format_line(instant: datetime, test_name: str, error: str) -> str:
        """Format one log line; newlines in the error are flattened."""
        flat_error = " ".join(error.splitlines())
        return f"{format_instant(instant)} | {test_name} | {flat_error}\n"

    async def append(self, test_name: str, error: str) -> None:
        """Append one line, creating the file and its directory if absent."""
        line = self.format_line(self.clock(), test_name, error)
        await asyncio.to_thread(self._append_sync, line)
        logger.info(f"Emergency log entry written to {self.path}")

    def _append_sync(self, line: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as fh:
            fh.write(line)
