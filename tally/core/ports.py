"""Port interfaces for the Tally result store.

These abstract base classes define the boundaries between core
domain logic and external adapters. Implementations live in the
adapters/ package.

Port Interface Categories:

1. **Driven Ports** (core calls out to adapters)
   - ExecutionStorePort: Persist one execution directory
   - SuiteSummaryStorePort: Serialized read-modify-write of suite summaries
   - ErrorLogPort: Last-resort append-only error log
   - RunReportPort: Plain-text summary of a whole run
"""

from abc import ABC, abstractmethod
from collections.abc import Callable

from .models import ExecutionRecord, RunStats, SuiteSummary

SummaryUpdate = Callable[[SuiteSummary | None], SuiteSummary]


class ExecutionStorePort(ABC):
    """Port for persisting the artifacts of a single execution.

    Each execution owns a distinct directory, so implementations never
    need to coordinate concurrent writers here.
    """

    @abstractmethod
    async def save_execution(
        self,
        record: ExecutionRecord,
        sanitized_name: str,
        screenshot: bytes | None = None,
    ) -> str:
        """Persist one execution record with its artifacts.

        Args:
            record: The record to persist. If ``screenshot`` is given the
                implementation fills in ``screenshot_path`` before writing.
            sanitized_name: Filesystem-safe form of ``record.test_name``.
            screenshot: Decoded screenshot bytes (optional).

        Returns:
            Location of the execution (directory path).

        Raises:
            OSError: If any directory or file cannot be written.
        """


class SuiteSummaryStorePort(ABC):
    """Port for the one shared resource: per-suite rolling summaries.

    Implementations must serialize ``update`` per suite so that
    concurrent callers never lose an update.
    """

    @abstractmethod
    async def update(self, suite_name: str, apply: SummaryUpdate) -> SuiteSummary:
        """Atomically read, transform and write a suite summary.

        Args:
            suite_name: Suite whose summary is updated.
            apply: Pure function receiving the current summary (None if
                absent or unreadable) and returning the summary to store.

        Returns:
            The summary that was written.

        Raises:
            OSError: If the summary cannot be written.
        """

    @abstractmethod
    async def get(self, suite_name: str) -> SuiteSummary | None:
        """Read a suite summary without modifying it.

        Returns:
            The summary, or None if absent or unreadable.
        """


class ErrorLogPort(ABC):
    """Port for emergency logging when recording a result fails."""

    @abstractmethod
    async def append(self, test_name: str, error: str) -> None:
        """Append a single diagnostic line.

        Raises:
            OSError: If the line cannot be written.
        """


class RunReportPort(ABC):
    """Port for the human-readable summary of a whole run."""

    @abstractmethod
    async def write_run_summary(self, stats: RunStats) -> None:
        """Write the run summary, replacing any previous one.

        Raises:
            OSError: If the report cannot be written.
        """
