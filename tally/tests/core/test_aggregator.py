"""Unit tests for SuiteAggregator and the SuiteSummary model."""

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from tally.core.aggregator import SuiteAggregator
from tally.core.models import ExecutionStatus, ResultEntry, SuiteSummary
from tally.tests.fakes import FakeSuiteSummaryStorePort

FIXED_NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)

STATUS_CYCLE = (
    ExecutionStatus.PASSED,
    ExecutionStatus.FAILED,
    ExecutionStatus.SKIPPED,
    ExecutionStatus.BLOCKED,
)


def make_entry(index: int, status: ExecutionStatus = ExecutionStatus.PASSED) -> ResultEntry:
    return ResultEntry(
        test_name=f"test {index}",
        status=status,
        timestamp=FIXED_NOW + timedelta(seconds=index),
        duration_ms=index * 10,
    )


@pytest.fixture
def store() -> FakeSuiteSummaryStorePort:
    return FakeSuiteSummaryStorePort()


@pytest.fixture
def aggregator(store: FakeSuiteSummaryStorePort) -> SuiteAggregator:
    return SuiteAggregator(store=store, clock=lambda: FIXED_NOW)


def assert_counters_consistent(summary: SuiteSummary) -> None:
    assert summary.total_tests == len(summary.results)
    assert (
        summary.passed_tests
        + summary.failed_tests
        + summary.skipped_tests
        + summary.blocked_tests
        == summary.total_tests
    )
    for status, count in (
        (ExecutionStatus.PASSED, summary.passed_tests),
        (ExecutionStatus.FAILED, summary.failed_tests),
        (ExecutionStatus.SKIPPED, summary.skipped_tests),
        (ExecutionStatus.BLOCKED, summary.blocked_tests),
    ):
        assert count == sum(1 for entry in summary.results if entry.status == status)


class TestSuiteSummaryModel:
    """Test SuiteSummary invariants."""

    def test_empty_summary(self) -> None:
        summary = SuiteSummary.empty("General", FIXED_NOW)
        assert summary.results == ()
        assert summary.total_tests == 0
        assert_counters_consistent(summary)

    def test_from_results_derives_counters(self) -> None:
        results = tuple(make_entry(i, STATUS_CYCLE[i % 4]) for i in range(7))
        summary = SuiteSummary.from_results("General", results, FIXED_NOW)
        assert summary.total_tests == 7
        assert summary.passed_tests == 2
        assert summary.failed_tests == 2
        assert summary.skipped_tests == 2
        assert summary.blocked_tests == 1

    def test_inconsistent_counters_rejected(self) -> None:
        with pytest.raises(ValueError, match="do not match"):
            SuiteSummary(
                suite_name="General",
                last_updated=FIXED_NOW,
                results=(make_entry(1),),
                total_tests=1,
                passed_tests=0,
            )


class TestSuiteAggregator:
    """Test rolling window maintenance."""

    def test_invalid_window_size(self, store: FakeSuiteSummaryStorePort) -> None:
        with pytest.raises(ValueError, match="window_size"):
            SuiteAggregator(store=store, window_size=0)

    def test_apply_entry_creates_summary(self, aggregator: SuiteAggregator) -> None:
        summary = aggregator.apply_entry("Dashboard", None, make_entry(1))
        assert summary.suite_name == "Dashboard"
        assert summary.results == (make_entry(1),)
        assert summary.total_tests == 1
        assert summary.passed_tests == 1
        assert summary.last_updated == FIXED_NOW

    @pytest.mark.asyncio
    async def test_first_update_creates_summary(
        self, aggregator: SuiteAggregator, store: FakeSuiteSummaryStorePort
    ) -> None:
        await aggregator.update_summary("Validation", make_entry(1, ExecutionStatus.FAILED))

        summary = await store.get("Validation")
        assert summary is not None
        assert summary.total_tests == 1
        assert summary.failed_tests == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [1, 2, 49, 50])
    async def test_window_below_limit_keeps_everything(
        self, aggregator: SuiteAggregator, count: int
    ) -> None:
        summary = None
        for i in range(count):
            summary = await aggregator.update_summary("General", make_entry(i, STATUS_CYCLE[i % 4]))

        assert summary is not None
        assert len(summary.results) == count
        assert summary.total_tests == count
        assert_counters_consistent(summary)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [51, 75, 120])
    async def test_window_evicts_oldest_first(
        self, aggregator: SuiteAggregator, count: int
    ) -> None:
        entries = [make_entry(i, STATUS_CYCLE[i % 4]) for i in range(count)]
        summary = None
        for entry in entries:
            summary = await aggregator.update_summary("General", entry)

        assert summary is not None
        assert len(summary.results) == 50
        assert summary.total_tests == 50
        assert list(summary.results) == entries[-50:]
        assert_counters_consistent(summary)

    @pytest.mark.asyncio
    async def test_custom_window_size(self, store: FakeSuiteSummaryStorePort) -> None:
        aggregator = SuiteAggregator(store=store, window_size=3, clock=lambda: FIXED_NOW)
        for i in range(5):
            await aggregator.update_summary("General", make_entry(i))

        summary = await store.get("General")
        assert summary is not None
        assert [entry.test_name for entry in summary.results] == ["test 2", "test 3", "test 4"]

    @pytest.mark.asyncio
    async def test_counters_follow_eviction(self, store: FakeSuiteSummaryStorePort) -> None:
        """Evicted entries no longer count towards any counter."""
        aggregator = SuiteAggregator(store=store, window_size=2, clock=lambda: FIXED_NOW)
        await aggregator.update_summary("General", make_entry(0, ExecutionStatus.FAILED))
        await aggregator.update_summary("General", make_entry(1, ExecutionStatus.PASSED))
        summary = await aggregator.update_summary("General", make_entry(2, ExecutionStatus.PASSED))

        assert summary.failed_tests == 0
        assert summary.passed_tests == 2

    @pytest.mark.asyncio
    async def test_suites_are_independent(
        self, aggregator: SuiteAggregator, store: FakeSuiteSummaryStorePort
    ) -> None:
        await aggregator.update_summary("Dashboard", make_entry(1))
        await aggregator.update_summary("Validation", make_entry(2))
        await aggregator.update_summary("Validation", make_entry(3))

        dashboard = await store.get("Dashboard")
        validation = await store.get("Validation")
        assert dashboard is not None and dashboard.total_tests == 1
        assert validation is not None and validation.total_tests == 2

    @pytest.mark.asyncio
    async def test_concurrent_updates_are_all_kept(
        self, aggregator: SuiteAggregator, store: FakeSuiteSummaryStorePort
    ) -> None:
        await asyncio.gather(
            *(aggregator.update_summary("General", make_entry(i)) for i in range(20))
        )

        summary = await store.get("General")
        assert summary is not None
        assert summary.total_tests == 20
        assert {entry.test_name for entry in summary.results} == {
            f"test {i}" for i in range(20)
        }
