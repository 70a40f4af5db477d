"""Result writer: turns one finished test into a persisted execution.

The recorder classifies the test, builds its ExecutionRecord, hands the
record to the execution store and then folds it into the suite summary.
Failures propagate; RecordingSession decides what to do with them.
"""

import base64
import binascii
import logging
from collections.abc import Callable
from datetime import UTC, datetime

from .aggregator import SuiteAggregator
from .classification import build_test_id, classify_suite, sanitize_test_name
from .models import ExecutionRecord, ExecutionStatus, RecordOptions
from .ports import ExecutionStorePort

logger = logging.getLogger(__name__)


def decode_screenshot(screenshot: bytes | str | None) -> bytes | None:
    """Return raw screenshot bytes, decoding base64 text if necessary.

    Raises:
        ValueError: If text is not valid base64.
    """
    if not screenshot:
        return None
    if isinstance(screenshot, str):
        try:
            return base64.b64decode(screenshot)
        except binascii.Error as e:
            raise ValueError(f"Screenshot is not valid base64: {e}") from e
    return bytes(screenshot)


class ResultRecorder:
    """Records one ExecutionRecord per test invocation."""

    def __init__(
        self,
        execution_store: ExecutionStorePort,
        aggregator: SuiteAggregator,
        default_browser: str = "chromium",
        default_environment: str = "dev",
        clock: Callable[[], datetime] | None = None,
    ):
        self.execution_store = execution_store
        self.aggregator = aggregator
        self.default_browser = default_browser
        self.default_environment = default_environment
        self.clock = clock or (lambda: datetime.now(UTC))

    def build_record(
        self,
        test_name: str,
        status: ExecutionStatus,
        options: RecordOptions,
        now: datetime,
    ) -> tuple[ExecutionRecord, str]:
        """Build the record for an execution and its sanitized name."""
        suite = classify_suite(test_name)
        sanitized_name = sanitize_test_name(test_name)
        record = ExecutionRecord(
            test_id=build_test_id(suite, sanitized_name, now),
            test_name=test_name,
            suite_name=suite.value,
            status=status,
            duration_ms=options.duration_ms or 0,
            timestamp=now,
            browser=options.browser or self.default_browser,
            environment=options.environment or self.default_environment,
            tags=options.tags,
            error=options.error,
            stack_trace=options.stack_trace,
            test_data=dict(options.test_data) if options.test_data is not None else None,
            url=options.url,
            started_at=options.started_at,
        )
        return record, sanitized_name

    async def record_execution(
        self,
        test_name: str,
        status: ExecutionStatus,
        options: RecordOptions | None = None,
    ) -> str:
        """Persist one execution and update its suite summary.

        Args:
            test_name: Caller-supplied test name (not necessarily unique).
            status: Outcome of the execution.
            options: Optional record fields.

        Returns:
            Path of the execution directory.

        Raises:
            OSError: If persisting the execution or the summary fails.
            ValueError: If the screenshot cannot be decoded.
        """
        options = options or RecordOptions()
        logger.info(f"Saving result for: {test_name} ({status.value})")

        screenshot = decode_screenshot(options.screenshot)
        record, sanitized_name = self.build_record(test_name, status, options, self.clock())

        execution_path = await self.execution_store.save_execution(
            record, sanitized_name, screenshot
        )
        await self.aggregator.update_summary(record.suite_name, record.to_result_entry())

        logger.info(
            f"Test result saved to: {execution_path}",
            extra={"test_id": record.test_id, "suite": record.suite_name},
        )
        return execution_path
