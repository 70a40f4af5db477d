"""Composition root for the Tally result store.

This module is the ONLY location that imports both core domain logic
and concrete adapter implementations. All wiring of dependencies
happens here, together with the ``tally`` command line.
"""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from tally.adapters.report.text import TextRunReportAdapter
from tally.adapters.store.error_log import FileErrorLog
from tally.adapters.store.filesystem import (
    FilesystemExecutionStore,
    FilesystemSuiteSummaryStore,
    summary_to_dict,
)
from tally.config import Settings, load_settings
from tally.core.aggregator import SuiteAggregator
from tally.core.classification import classify_suite, map_runner_status, sanitize_test_name
from tally.core.models import RecordOptions
from tally.core.recorder import ResultRecorder
from tally.core.session import RecordingSession

logger = logging.getLogger(__name__)


def configure_logging(log_level: str, log_format: str) -> None:
    """Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).
    """
    level = getattr(logging, log_level, logging.INFO)

    if log_format == "json":
        format_str = '{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}'
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stderr),
        ],
    )


def build_summary_store(settings: Settings) -> FilesystemSuiteSummaryStore:
    """Create the suite summary store for the configured results tree."""
    return FilesystemSuiteSummaryStore(
        base_dir=settings.results_dir,
        lock_timeout_seconds=settings.lock_timeout_seconds,
    )


def build_session(settings: Settings) -> RecordingSession:
    """Wire adapters and core services into a recording session.

    Raises:
        OSError: If the results directory cannot be created.
    """
    execution_store = FilesystemExecutionStore(base_dir=settings.results_dir)
    aggregator = SuiteAggregator(
        store=build_summary_store(settings),
        window_size=settings.summary_window_size,
    )
    recorder = ResultRecorder(
        execution_store=execution_store,
        aggregator=aggregator,
        default_browser=settings.default_browser,
        default_environment=settings.environment,
    )
    run_report = TextRunReportAdapter(
        base_dir=settings.results_dir,
        project_name=settings.project_name,
        project_version=settings.project_version,
        environment=settings.environment,
        base_url=settings.base_url,
    )
    logger.info(f"Result store initialized at: {Path(settings.results_dir).resolve()}")
    return RecordingSession(
        recorder=recorder,
        error_log=FileErrorLog(settings.results_dir),
        run_report=run_report,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the ``tally`` argument parser."""
    parser = argparse.ArgumentParser(
        prog="tally", description="Record and inspect test execution results"
    )
    parser.add_argument(
        "--results-dir",
        help="Root of the results tree (overrides TALLY_RESULTS_DIR)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    record = subparsers.add_parser("record", help="Record one test execution")
    record.add_argument("name", help="Test name")
    record.add_argument(
        "--status",
        required=True,
        help="Outcome (passed, failed, skipped, timedOut, interrupted, blocked)",
    )
    record.add_argument("--duration", type=int, default=None, help="Duration in ms")
    record.add_argument("--error", help="Error message")
    record.add_argument("--stack-trace", help="Stack trace")
    record.add_argument("--browser", help="Browser or engine name")
    record.add_argument("--environment", help="Environment tag")
    record.add_argument("--tag", action="append", default=[], help="Tag (repeatable)")
    record.add_argument("--screenshot", type=Path, help="PNG file to attach")
    record.add_argument("--data", help="Test data as a JSON object")
    record.add_argument("--url", help="Last known page URL")

    summary = subparsers.add_parser("summary", help="Print a suite summary")
    summary.add_argument("suite", help="Suite name, e.g. Authentication")

    classify = subparsers.add_parser("classify", help="Show suite and directory name")
    classify.add_argument("name", help="Test name")

    return parser


def _options_from_args(args: argparse.Namespace) -> RecordOptions:
    test_data: dict[str, Any] | None = None
    if args.data:
        test_data = json.loads(args.data)
        if not isinstance(test_data, dict):
            raise ValueError("--data must be a JSON object")
    screenshot = args.screenshot.read_bytes() if args.screenshot else None
    return RecordOptions(
        error=args.error,
        stack_trace=args.stack_trace,
        duration_ms=args.duration,
        browser=args.browser,
        environment=args.environment,
        tags=tuple(args.tag),
        screenshot=screenshot,
        test_data=test_data,
        url=args.url,
    )


async def run(args: argparse.Namespace, settings: Settings) -> int:
    """Execute a parsed command and return the exit code."""
    if args.command == "classify":
        print(
            json.dumps(
                {
                    "suite": classify_suite(args.name).value,
                    "sanitizedName": sanitize_test_name(args.name),
                }
            )
        )
        return 0

    if args.command == "summary":
        summary = await build_summary_store(settings).get(args.suite)
        if summary is None:
            logger.error(f"No summary found for suite: {args.suite}")
            return 1
        print(json.dumps(summary_to_dict(summary), indent=2))
        return 0

    if args.command == "record":
        try:
            options = _options_from_args(args)
        except (OSError, ValueError) as e:
            logger.error(f"Invalid record options: {e}")
            return 1
        session = build_session(settings)
        execution_path = await session.record(
            args.name, map_runner_status(args.status), options
        )
        if execution_path is None:
            return 1
        print(execution_path)
        return 0

    logger.error(f"Unknown command: {args.command}")
    return 1


def main(argv: Sequence[str] | None = None) -> None:
    """Application entry point.

    Exit codes:
        0: Success
        1: Command failed
        2: Usage error
    """
    args = build_parser().parse_args(argv)

    overrides: dict[str, Any] = {}
    if args.results_dir:
        overrides["results_dir"] = args.results_dir
    settings = load_settings(**overrides)
    configure_logging(settings.log_level, settings.log_format)

    try:
        exit_code = asyncio.run(run(args, settings))
    except KeyboardInterrupt:
        logger.warning("Interrupted by user (SIGINT)")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
