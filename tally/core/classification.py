"""Naming rules for test executions.

Pure functions that derive a suite, a filesystem-safe name and a
directory timestamp from caller-supplied values. None of them can fail.
"""

import re
from datetime import UTC, datetime, timedelta

from .models import ExecutionStatus, Suite, format_instant

# Ordered: first matching keyword wins.
SUITE_RULES: tuple[tuple[str, Suite], ...] = (
    ("login", Suite.AUTHENTICATION),
    ("dashboard", Suite.DASHBOARD),
    ("admin", Suite.ADMINISTRATION),
    ("validate", Suite.VALIDATION),
)

MAX_SANITIZED_LENGTH = 100

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

_DISALLOWED_CHARS = re.compile(r"[^A-Za-z0-9\s_-]")
_WHITESPACE_RUN = re.compile(r"\s+")

_RUNNER_STATUSES: dict[str, ExecutionStatus] = {
    "passed": ExecutionStatus.PASSED,
    "failed": ExecutionStatus.FAILED,
    "skipped": ExecutionStatus.SKIPPED,
    "blocked": ExecutionStatus.BLOCKED,
    "timedout": ExecutionStatus.BLOCKED,
    "interrupted": ExecutionStatus.BLOCKED,
}


def classify_suite(test_name: str) -> Suite:
    """Derive the suite a test belongs to from its name.

    Matching is a case-insensitive substring check against SUITE_RULES;
    names matching no rule fall into the General suite.

    Examples:
        >>> classify_suite("Login test").value
        'Authentication'
        >>> classify_suite("Random flow").value
        'General'
    """
    lowered = test_name.lower()
    for keyword, suite in SUITE_RULES:
        if keyword in lowered:
            return suite
    return Suite.GENERAL


def sanitize_test_name(test_name: str) -> str:
    """Derive a filesystem-safe identifier from a test name.

    Drops every character outside ``[A-Za-z0-9 _-]``, turns whitespace
    runs into single underscores, lower-cases and truncates to 100
    characters. A name made only of disallowed characters yields ``""``.

    Examples:
        >>> sanitize_test_name("Login: valid user @ home")
        'login_valid_user_home'
    """
    kept = _DISALLOWED_CHARS.sub("", test_name)
    underscored = _WHITESPACE_RUN.sub("_", kept)
    return underscored.lower()[:MAX_SANITIZED_LENGTH]


def directory_timestamp(instant: datetime) -> str:
    """Render an instant as a directory name with no colons or periods."""
    return format_instant(instant).replace(":", "-").replace(".", "-")


def epoch_millis(instant: datetime) -> int:
    """Milliseconds since the Unix epoch for an aware instant."""
    return (instant - _EPOCH) // timedelta(milliseconds=1)


def build_test_id(suite: Suite, sanitized_name: str, instant: datetime) -> str:
    """Build ``<suite>_<sanitized name>_<epoch millis>``.

    Two executions of one test within the same millisecond share an id.
    """
    return f"{suite.value}_{sanitized_name}_{epoch_millis(instant)}"


def map_runner_status(raw_status: str | None) -> ExecutionStatus:
    """Map a test runner's status vocabulary onto ExecutionStatus.

    Unknown or missing statuses map to SKIPPED.
    """
    if not raw_status:
        return ExecutionStatus.SKIPPED
    return _RUNNER_STATUSES.get(raw_status.strip().lower(), ExecutionStatus.SKIPPED)
