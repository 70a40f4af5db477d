"""Plain-text run summary adapter.

Implements RunReportPort by writing ``<base>/test-summary.txt`` at the
end of a run, replacing the previous one.
"""

import asyncio
import logging
from pathlib import Path

from tally.core.models import RunStats, format_instant
from tally.core.ports import RunReportPort

logger = logging.getLogger(__name__)

RUN_SUMMARY_FILE = "test-summary.txt"


class TextRunReportAdapter(RunReportPort):
    """Writes a human-readable summary of a run."""

    def __init__(
        self,
        base_dir: str,
        project_name: str,
        project_version: str,
        environment: str,
        base_url: str = "",
    ):
        self.base_dir = Path(base_dir)
        self.project_name = project_name
        self.project_version = project_version
        self.environment = environment
        self.base_url = base_url

    @property
    def path(self) -> Path:
        return self.base_dir / RUN_SUMMARY_FILE

    async def write_run_summary(self, stats: RunStats) -> None:
        """Write the summary file."""
        content = self._format_summary(stats)
        try:
            await asyncio.to_thread(self._write_sync, content)
        except OSError as e:
            logger.error(
                f"Failed to write run summary: {e}",
                extra={"path": str(self.path)},
                exc_info=True,
            )
            raise
        logger.info(f"Summary report saved: {self.path}")

    def _write_sync(self, content: str) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.path.write_text(content, encoding="utf-8")

    def _format_summary(self, stats: RunStats) -> str:
        results_root = self.base_dir.resolve()
        lines = [
            "Test Execution Summary",
            "=" * 22,
            f"Generated: {format_instant(stats.finished_at)}",
            f"Started: {format_instant(stats.started_at)}",
            f"Project: {self.project_name} {self.project_version}",
            f"Environment: {self.environment}",
        ]
        if self.base_url:
            lines.append(f"Base URL: {self.base_url}")
        lines.append("")

        lines.append(f"Recorded: {stats.recorded}")
        lines.append(f"Failed to record: {stats.failed_to_record}")
        for status, count in sorted(stats.by_status.items()):
            lines.append(f"  {status}: {count}")
        lines.append("")

        if stats.by_suite:
            lines.append("By suite:")
            for suite, count in sorted(stats.by_suite.items()):
                lines.append(f"  {suite}: {count}")
            lines.append("")

        lines.append(f"Results stored in: {results_root}")
        lines.append(f"Individual test results: {results_root / 'suites'}")
        lines.append("=" * 49)
        return "\n".join(lines) + "\n"
