"""Domain models for the Tally result store.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any


class ExecutionStatus(Enum):
    """Outcome of a single test execution."""

    PASSED = "PASSED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"
    BLOCKED = "BLOCKED"


class Suite(Enum):
    """Logical suites inferred from test naming conventions."""

    AUTHENTICATION = "Authentication"
    DASHBOARD = "Dashboard"
    ADMINISTRATION = "Administration"
    VALIDATION = "Validation"
    GENERAL = "General"


def format_instant(instant: datetime) -> str:
    """Render an instant as ISO-8601 UTC with millisecond precision.

    Example: ``2024-01-01T12:00:00.123Z``.
    """
    utc = instant.astimezone(UTC)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def parse_instant(text: str) -> datetime:
    """Parse an instant written by format_instant (or any ISO-8601 string)."""
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass(frozen=True)
class RecordOptions:
    """Optional fields supplied by the caller for one execution.

    ``screenshot`` accepts raw bytes or base64-encoded text.
    ``started_at`` is the instant the test began; it is carried into
    the record explicitly rather than looked up from shared state.
    """

    error: str | None = None
    stack_trace: str | None = None
    duration_ms: int | None = None
    browser: str | None = None
    environment: str | None = None
    tags: tuple[str, ...] = ()
    screenshot: bytes | str | None = None
    test_data: Mapping[str, Any] | None = None
    url: str | None = None
    started_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate option invariants on creation."""
        if self.duration_ms is not None and self.duration_ms < 0:
            raise ValueError(
                f"duration_ms must be non-negative, got {self.duration_ms}"
            )
        if not isinstance(self.tags, tuple):
            object.__setattr__(self, "tags", tuple(self.tags))


@dataclass(frozen=True)
class ExecutionRecord:
    """One test run's outcome, immutable once written.

    A re-run of the same test produces a new record in a new
    timestamped directory; records are never edited in place.
    """

    test_id: str
    test_name: str
    suite_name: str
    status: ExecutionStatus
    duration_ms: int
    timestamp: datetime
    browser: str
    environment: str
    tags: tuple[str, ...] = ()
    error: str | None = None
    stack_trace: str | None = None
    screenshot_path: str | None = None
    test_data: Mapping[str, Any] | None = None
    url: str | None = None
    started_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate record invariants and freeze mutable containers."""
        if self.duration_ms < 0:
            raise ValueError(
                f"duration_ms must be non-negative, got {self.duration_ms}"
            )
        if isinstance(self.test_data, dict):
            object.__setattr__(self, "test_data", MappingProxyType(self.test_data))

    def to_result_entry(self) -> "ResultEntry":
        """Project this record onto the lightweight summary entry."""
        return ResultEntry(
            test_name=self.test_name,
            status=self.status,
            timestamp=self.timestamp,
            duration_ms=self.duration_ms,
        )


@dataclass(frozen=True)
class ResultEntry:
    """Lightweight entry kept in a suite's rolling window."""

    test_name: str
    status: ExecutionStatus
    timestamp: datetime
    duration_ms: int


@dataclass(frozen=True)
class SuiteSummary:
    """Rolling aggregate for one suite.

    Counters are always derived from ``results``; use ``from_results``
    to build a summary instead of passing counts by hand.
    """

    suite_name: str
    last_updated: datetime
    results: tuple[ResultEntry, ...] = ()
    total_tests: int = 0
    passed_tests: int = 0
    failed_tests: int = 0
    skipped_tests: int = 0
    blocked_tests: int = 0

    def __post_init__(self) -> None:
        """Ensure the counters agree with the result window."""
        expected = _count_by_status(self.results)
        actual = (
            self.total_tests,
            self.passed_tests,
            self.failed_tests,
            self.skipped_tests,
            self.blocked_tests,
        )
        if actual != expected:
            raise ValueError(
                f"Summary counters {actual} do not match results {expected}"
            )

    @classmethod
    def empty(cls, suite_name: str, now: datetime) -> "SuiteSummary":
        """Create a summary with no results and all-zero counters."""
        return cls(suite_name=suite_name, last_updated=now)

    @classmethod
    def from_results(
        cls, suite_name: str, results: tuple[ResultEntry, ...], last_updated: datetime
    ) -> "SuiteSummary":
        """Create a summary whose counters are re-derived from ``results``."""
        total, passed, failed, skipped, blocked = _count_by_status(results)
        return cls(
            suite_name=suite_name,
            last_updated=last_updated,
            results=results,
            total_tests=total,
            passed_tests=passed,
            failed_tests=failed,
            skipped_tests=skipped,
            blocked_tests=blocked,
        )


def _count_by_status(results: tuple[ResultEntry, ...]) -> tuple[int, int, int, int, int]:
    counts = {status: 0 for status in ExecutionStatus}
    for entry in results:
        counts[entry.status] += 1
    return (
        len(results),
        counts[ExecutionStatus.PASSED],
        counts[ExecutionStatus.FAILED],
        counts[ExecutionStatus.SKIPPED],
        counts[ExecutionStatus.BLOCKED],
    )


@dataclass(frozen=True)
class RunStats:
    """Per-run counts collected by a recording session."""

    started_at: datetime
    finished_at: datetime
    recorded: int
    failed_to_record: int
    by_status: Mapping[str, int] = field(default_factory=dict)
    by_suite: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Convert mutable dicts to immutable proxies."""
        object.__setattr__(self, "by_status", MappingProxyType(dict(self.by_status)))
        object.__setattr__(self, "by_suite", MappingProxyType(dict(self.by_suite)))
