"""pytest plugin that records every test into a Tally results tree.

Opt-in: load it with ``-p tally.adapters.pytest_plugin`` and pass
``--tally-results DIR``. Without the option the plugin does nothing.

One execution is recorded per test item, from the report of the phase
that decided its outcome. Recording failures never fail the run.
"""

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any

import pytest

from tally.config import load_settings
from tally.core.models import ExecutionStatus, RecordOptions, format_instant
from tally.core.session import RecordingSession
from tally.main import build_session

logger = logging.getLogger(__name__)

_CALL_OUTCOMES = {
    "passed": ExecutionStatus.PASSED,
    "failed": ExecutionStatus.FAILED,
    "skipped": ExecutionStatus.SKIPPED,
}


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("tally", "test result store")
    group.addoption(
        "--tally-results",
        dest="tally_results",
        default=None,
        metavar="DIR",
        help="Record every test outcome into the results tree at DIR.",
    )


def pytest_configure(config: pytest.Config) -> None:
    results_dir = config.getoption("tally_results", default=None)
    if not results_dir:
        return
    settings = load_settings(results_dir=results_dir)
    config.pluginmanager.register(
        TallyRecorderPlugin(build_session(settings)), "tally-recorder"
    )


def outcome_status(report: pytest.TestReport) -> ExecutionStatus | None:
    """Status decided by this report, or None if another phase decides it.

    A failing setup blocks the test; an expected failure counts as skipped.
    """
    if hasattr(report, "wasxfail"):
        return ExecutionStatus.SKIPPED
    if report.when == "call":
        return _CALL_OUTCOMES.get(report.outcome, ExecutionStatus.SKIPPED)
    if report.when == "setup" and report.failed:
        return ExecutionStatus.BLOCKED
    if report.when == "setup" and report.skipped:
        return ExecutionStatus.SKIPPED
    return None


def build_options(
    item: pytest.Item,
    call: pytest.CallInfo[None],
    report: pytest.TestReport,
    status: ExecutionStatus,
) -> RecordOptions:
    """Collect the record fields pytest knows about one test."""
    started_at = datetime.fromtimestamp(call.start, UTC)
    finished_at = datetime.fromtimestamp(call.stop, UTC)
    duration_ms = max(0, round(call.duration * 1000))

    error: str | None = None
    stack_trace: str | None = None
    if status in {ExecutionStatus.FAILED, ExecutionStatus.BLOCKED}:
        if call.excinfo is not None:
            error = call.excinfo.exconly()
        stack_trace = report.longreprtext or None

    test_data: dict[str, Any] = {
        "nodeid": item.nodeid,
        "phase": report.when,
        "testStartTime": format_instant(started_at),
        "testEndTime": format_instant(finished_at),
        "testStatus": status.value,
        "testDuration": duration_ms,
    }
    return RecordOptions(
        error=error,
        stack_trace=stack_trace,
        duration_ms=duration_ms,
        tags=tuple(sorted({marker.name for marker in item.iter_markers()})),
        test_data=test_data,
        started_at=started_at,
    )


class TallyRecorderPlugin:
    """Feeds pytest reports into a RecordingSession."""

    def __init__(self, recording: RecordingSession):
        self.recording = recording

    @pytest.hookimpl(wrapper=True)
    def pytest_runtest_makereport(
        self, item: pytest.Item, call: pytest.CallInfo[None]
    ) -> Any:
        report = yield
        status = outcome_status(report)
        if status is not None:
            options = build_options(item, call, report, status)
            asyncio.run(self.recording.record(item.name, status, options))
        return report

    def pytest_sessionfinish(self, session: pytest.Session) -> None:
        stats = asyncio.run(self.recording.finish())
        logger.info(
            f"Recorded {stats.recorded} test result(s), "
            f"{stats.failed_to_record} failed to record"
        )
