"""Fake/mock implementations of core ports for testing.

These in-memory implementations allow core domain logic to be tested
without touching the filesystem:

- FakeExecutionStorePort: Captured execution records
- FakeSuiteSummaryStorePort: In-memory suite summaries
- FakeErrorLogPort: Captured emergency log lines
- FakeRunReportPort: Captured run summaries
"""

from .error_log import FakeErrorLogPort
from .execution_store import FakeExecutionStorePort
from .run_report import FakeRunReportPort
from .summary_store import FakeSuiteSummaryStorePort

__all__ = [
    "FakeErrorLogPort",
    "FakeExecutionStorePort",
    "FakeRunReportPort",
    "FakeSuiteSummaryStorePort",
]
