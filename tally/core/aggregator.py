"""Rolling per-suite summaries.

The aggregation rules are pure; persistence and mutual exclusion are
delegated to a SuiteSummaryStorePort.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from .models import ResultEntry, SuiteSummary
from .ports import SuiteSummaryStorePort

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SIZE = 50


class SuiteAggregator:
    """Maintains one bounded, time-ordered summary per suite."""

    def __init__(
        self,
        store: SuiteSummaryStorePort,
        window_size: int = DEFAULT_WINDOW_SIZE,
        clock: Callable[[], datetime] | None = None,
    ):
        if window_size < 1:
            raise ValueError(f"window_size must be >= 1, got {window_size}")
        self.store = store
        self.window_size = window_size
        self.clock = clock or (lambda: datetime.now(UTC))

    def apply_entry(
        self, suite_name: str, current: SuiteSummary | None, entry: ResultEntry
    ) -> SuiteSummary:
        """Append an entry to a summary and re-derive its counters.

        Oldest entries are evicted first once the window is full.
        """
        previous = current.results if current is not None else ()
        results = (*previous, entry)[-self.window_size:]
        return SuiteSummary.from_results(suite_name, results, self.clock())

    async def update_summary(self, suite_name: str, entry: ResultEntry) -> SuiteSummary:
        """Fold one result into the suite's stored summary."""
        summary = await self.store.update(
            suite_name, lambda current: self.apply_entry(suite_name, current, entry)
        )
        logger.debug(
            f"Updated {suite_name} summary: {summary.total_tests} results, "
            f"{summary.failed_tests} failed"
        )
        return summary
