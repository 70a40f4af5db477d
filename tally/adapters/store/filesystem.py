"""Filesystem result store adapters.

Implements ExecutionStorePort and SuiteSummaryStorePort on a plain
directory tree that report tools can read directly:

    <base>/suites/<Suite>/suite-summary.json
    <base>/suites/<Suite>/<sanitized_name>/<timestamp>/test-result.json
                                                      screenshots/
                                                      logs/
                                                      data/

Blocking I/O runs in worker threads via asyncio.to_thread.
"""

import asyncio
import dataclasses
import json
import logging
import os
import secrets
import threading
from pathlib import Path
from typing import Any

from filelock import FileLock

from tally.core.classification import directory_timestamp
from tally.core.models import (
    ExecutionRecord,
    ExecutionStatus,
    ResultEntry,
    SuiteSummary,
    format_instant,
    parse_instant,
)
from tally.core.ports import ExecutionStorePort, SuiteSummaryStorePort, SummaryUpdate

logger = logging.getLogger(__name__)

SUITES_DIR = "suites"
RESULT_FILE = "test-result.json"
SUMMARY_FILE = "suite-summary.json"
SCREENSHOT_FILE = Path("screenshots") / "test-screenshot.png"
TEST_DATA_FILE = Path("data") / "test-data.json"
EXECUTION_SUBDIRECTORIES = ("screenshots", "logs", "data")


def record_to_dict(record: ExecutionRecord) -> dict[str, Any]:
    """Serialize a record to the test-result.json schema.

    Optional fields that are unset are omitted.
    """
    payload: dict[str, Any] = {
        "testId": record.test_id,
        "testName": record.test_name,
        "testSuite": record.suite_name,
        "status": record.status.value,
        "error": record.error,
        "stackTrace": record.stack_trace,
        "duration": record.duration_ms,
        "timestamp": format_instant(record.timestamp),
        "startedAt": format_instant(record.started_at) if record.started_at else None,
        "browser": record.browser,
        "environment": record.environment,
        "tags": list(record.tags),
        "screenshotPath": record.screenshot_path,
        "testData": dict(record.test_data) if record.test_data is not None else None,
        "url": record.url,
    }
    return {key: value for key, value in payload.items() if value is not None}


def summary_to_dict(summary: SuiteSummary) -> dict[str, Any]:
    """Serialize a suite summary to the suite-summary.json schema."""
    return {
        "suiteName": summary.suite_name,
        "lastUpdated": format_instant(summary.last_updated),
        "totalTests": summary.total_tests,
        "passedTests": summary.passed_tests,
        "failedTests": summary.failed_tests,
        "skippedTests": summary.skipped_tests,
        "blockedTests": summary.blocked_tests,
        "results": [
            {
                "testName": entry.test_name,
                "status": entry.status.value,
                "timestamp": format_instant(entry.timestamp),
                "duration": entry.duration_ms,
            }
            for entry in summary.results
        ],
    }


def summary_from_dict(suite_name: str, data: Any) -> SuiteSummary:
    """Deserialize a suite summary, re-deriving its counters.

    Unknown fields are ignored. Stored counters are not trusted.

    Raises:
        ValueError: If the document does not have the summary shape.
    """
    if not isinstance(data, dict) or not isinstance(data.get("results"), list):
        raise ValueError("summary must be an object with a results list")
    try:
        results = tuple(
            ResultEntry(
                test_name=str(item["testName"]),
                status=ExecutionStatus(item["status"]),
                timestamp=parse_instant(item["timestamp"]),
                duration_ms=int(item.get("duration", 0)),
            )
            for item in data["results"]
        )
        last_updated = parse_instant(data["lastUpdated"])
    except (KeyError, TypeError, AttributeError, OverflowError) as e:
        raise ValueError(f"malformed summary entry: {e}") from e
    return SuiteSummary.from_results(suite_name, results, last_updated)


def _write_json(path: Path, payload: Any) -> None:
    path.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")


class FilesystemExecutionStore(ExecutionStorePort):
    """Writes one timestamped directory per execution."""

    def __init__(self, base_dir: str):
        """Initialize the execution store.

        Args:
            base_dir: Root of the results tree. Created if missing.

        Raises:
            OSError: If the base directory cannot be created.
        """
        self.base_dir = Path(base_dir)
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OSError(f"Failed to create results directory {base_dir}: {e}") from e

    def test_dir(self, suite_name: str, sanitized_name: str) -> Path:
        """Directory holding every execution of one test."""
        return self.base_dir / SUITES_DIR / suite_name / sanitized_name

    async def save_execution(
        self,
        record: ExecutionRecord,
        sanitized_name: str,
        screenshot: bytes | None = None,
    ) -> str:
        """Persist the record, screenshot and test data for one execution."""
        execution_dir = await asyncio.to_thread(
            self._save_sync, record, sanitized_name, screenshot
        )
        return str(execution_dir)

    def _save_sync(
        self,
        record: ExecutionRecord,
        sanitized_name: str,
        screenshot: bytes | None,
    ) -> Path:
        test_dir = self.test_dir(record.suite_name, sanitized_name)
        try:
            execution_dir = self._create_execution_dir(
                test_dir, directory_timestamp(record.timestamp)
            )

            if screenshot:
                screenshot_path = execution_dir / SCREENSHOT_FILE
                screenshot_path.write_bytes(screenshot)
                record = dataclasses.replace(record, screenshot_path=str(screenshot_path))
                logger.info(f"Screenshot saved: {screenshot_path}")

            _write_json(execution_dir / RESULT_FILE, record_to_dict(record))

            if record.test_data is not None:
                _write_json(execution_dir / TEST_DATA_FILE, dict(record.test_data))
        except OSError as e:
            logger.error(
                f"Failed to write execution for {record.test_name}: {e}",
                extra={"path": str(test_dir)},
                exc_info=True,
            )
            raise

        return execution_dir

    @staticmethod
    def _create_execution_dir(test_dir: Path, stamp: str) -> Path:
        """Create a fresh execution directory and its subdirectories.

        The leaf directory is created exclusively; when another execution
        already claimed the same timestamp a random suffix is appended.
        """
        test_dir.mkdir(parents=True, exist_ok=True)
        execution_dir = test_dir / stamp
        while True:
            try:
                execution_dir.mkdir()
                break
            except FileExistsError:
                execution_dir = test_dir / f"{stamp}-{secrets.token_hex(3)}"
        for name in EXECUTION_SUBDIRECTORIES:
            (execution_dir / name).mkdir(exist_ok=True)
        return execution_dir


class FilesystemSuiteSummaryStore(SuiteSummaryStorePort):
    """Keeps suite-summary.json files under serialized read-modify-write.

    Each update holds an in-process lock for the summary path and an
    advisory file lock next to it, so threads and processes sharing a
    results tree never lose an update.
    """

    _path_locks: dict[str, threading.Lock] = {}
    _path_locks_guard = threading.Lock()

    def __init__(self, base_dir: str, lock_timeout_seconds: float = 30.0):
        """Initialize the summary store.

        Args:
            base_dir: Root of the results tree.
            lock_timeout_seconds: How long to wait for another process
                holding the suite's file lock before giving up.
        """
        self.base_dir = Path(base_dir)
        self.lock_timeout_seconds = lock_timeout_seconds

    def summary_path(self, suite_name: str) -> Path:
        """Location of a suite's summary file."""
        return self.base_dir / SUITES_DIR / suite_name / SUMMARY_FILE

    @classmethod
    def _lock_for(cls, path: Path) -> threading.Lock:
        key = str(path.resolve())
        with cls._path_locks_guard:
            lock = cls._path_locks.get(key)
            if lock is None:
                lock = cls._path_locks[key] = threading.Lock()
            return lock

    async def update(self, suite_name: str, apply: SummaryUpdate) -> SuiteSummary:
        """Apply an update to a suite summary under the suite's lock."""
        return await asyncio.to_thread(self._update_sync, suite_name, apply)

    async def get(self, suite_name: str) -> SuiteSummary | None:
        """Read a suite summary; None when missing or unreadable."""
        return await asyncio.to_thread(self._read, self.summary_path(suite_name), suite_name)

    def _update_sync(self, suite_name: str, apply: SummaryUpdate) -> SuiteSummary:
        path = self.summary_path(suite_name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OSError(f"Failed to create suite directory {path.parent}: {e}") from e

        file_lock = FileLock(f"{path}.lock", timeout=self.lock_timeout_seconds)
        with self._lock_for(path), file_lock:
            summary = apply(self._read(path, suite_name))
            try:
                self._write_atomic(path, summary_to_dict(summary))
            except OSError as e:
                logger.error(
                    f"Failed to write suite summary: {e}",
                    extra={"path": str(path)},
                    exc_info=True,
                )
                raise
        return summary

    @staticmethod
    def _read(path: Path, suite_name: str) -> SuiteSummary | None:
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return summary_from_dict(suite_name, data)
        except (OSError, ValueError, RecursionError) as e:
            logger.warning(f"Discarding unreadable summary {path}: {e}")
            return None

    @staticmethod
    def _write_atomic(path: Path, payload: dict[str, Any]) -> None:
        tmp = path.with_name(f"{path.name}.{os.getpid()}.{threading.get_ident()}.tmp")
        try:
            _write_json(tmp, payload)
            os.replace(tmp, path)
        finally:
            tmp.unlink(missing_ok=True)
