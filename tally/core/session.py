"""Recording session for one test run.

The session is the caller-side layer around ResultRecorder: it never
lets a storage failure escape into the test run, falling back to the
emergency error log instead, and it produces the end-of-run summary.
"""

import logging
from collections import Counter
from collections.abc import Callable
from datetime import UTC, datetime

from .classification import classify_suite
from .models import ExecutionStatus, RecordOptions, RunStats
from .ports import ErrorLogPort, RunReportPort
from .recorder import ResultRecorder

logger = logging.getLogger(__name__)


class RecordingSession:
    """Records results for a run and degrades gracefully on failure."""

    def __init__(
        self,
        recorder: ResultRecorder,
        error_log: ErrorLogPort,
        run_report: RunReportPort | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.recorder = recorder
        self.error_log = error_log
        self.run_report = run_report
        self.clock = clock or (lambda: datetime.now(UTC))
        self.started_at = self.clock()
        self.by_status: Counter[str] = Counter()
        self.by_suite: Counter[str] = Counter()
        self.recorded = 0
        self.failed_to_record = 0

    async def record(
        self,
        test_name: str,
        status: ExecutionStatus,
        options: RecordOptions | None = None,
    ) -> str | None:
        """Record one execution without ever raising.

        Returns:
            The execution directory, or None if recording failed.
        """
        try:
            execution_path = await self.recorder.record_execution(test_name, status, options)
        except Exception as e:
            self.failed_to_record += 1
            logger.error(f"Error saving test result for {test_name}: {e}", exc_info=True)
            await self._emergency_log(test_name, e)
            return None

        self.recorded += 1
        self.by_status[status.value] += 1
        self.by_suite[classify_suite(test_name).value] += 1
        return execution_path

    async def _emergency_log(self, test_name: str, error: Exception) -> None:
        try:
            await self.error_log.append(test_name, str(error))
        except Exception as log_error:
            logger.error(f"Emergency logging also failed: {log_error}")

    def stats(self) -> RunStats:
        """Snapshot of what this session has recorded so far."""
        return RunStats(
            started_at=self.started_at,
            finished_at=self.clock(),
            recorded=self.recorded,
            failed_to_record=self.failed_to_record,
            by_status=dict(self.by_status),
            by_suite=dict(self.by_suite),
        )

    async def finish(self) -> RunStats:
        """Write the run summary, if a report port is configured.

        A failure to write the summary is logged and otherwise ignored.
        """
        stats = self.stats()
        if self.run_report is None:
            return stats
        try:
            await self.run_report.write_run_summary(stats)
        except Exception as e:
            logger.warning(f"Could not create summary report: {e}")
        return stats
