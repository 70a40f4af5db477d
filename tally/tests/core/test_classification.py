"""Unit tests for suite classification and name sanitization."""

import re
from datetime import UTC, datetime

import pytest

from tally.core.classification import (
    MAX_SANITIZED_LENGTH,
    build_test_id,
    classify_suite,
    directory_timestamp,
    epoch_millis,
    map_runner_status,
    sanitize_test_name,
)
from tally.core.models import ExecutionStatus, Suite

SAFE_NAME = re.compile(r"^[a-z0-9_-]*$")


class TestClassifySuite:
    """Test ordered, case-insensitive suite rules."""

    @pytest.mark.parametrize(
        ("test_name", "expected"),
        [
            ("Login test", Suite.AUTHENTICATION),
            ("Dashboard loads widgets", Suite.DASHBOARD),
            ("Admin - add user", Suite.ADMINISTRATION),
            ("should validate email field", Suite.VALIDATION),
            ("Random flow", Suite.GENERAL),
            ("", Suite.GENERAL),
        ],
    )
    def test_rules(self, test_name: str, expected: Suite) -> None:
        assert classify_suite(test_name) == expected

    @pytest.mark.parametrize(
        "test_name",
        ["LOGIN", "login", "LoGiN with sso", "user-LOGIN-flow"],
    )
    def test_case_insensitive(self, test_name: str) -> None:
        assert classify_suite(test_name) == Suite.AUTHENTICATION

    def test_first_matching_rule_wins(self) -> None:
        """A name matching several rules takes the earliest one."""
        assert classify_suite("admin dashboard after login") == Suite.AUTHENTICATION
        assert classify_suite("admin dashboard") == Suite.DASHBOARD
        assert classify_suite("validate admin form") == Suite.ADMINISTRATION

    def test_substring_match(self) -> None:
        assert classify_suite("administrator rights") == Suite.ADMINISTRATION
        assert classify_suite("revalidated cache") == Suite.VALIDATION


class TestSanitizeTestName:
    """Test filesystem-safe name derivation."""

    def test_basic_name(self) -> None:
        assert sanitize_test_name("Login test") == "login_test"

    def test_strips_special_characters(self) -> None:
        assert sanitize_test_name("Login: valid user @ home!") == "login_valid_user_home"

    def test_collapses_whitespace_runs(self) -> None:
        assert sanitize_test_name("a \t\n  b") == "a_b"

    def test_keeps_hyphens_and_underscores(self) -> None:
        assert sanitize_test_name("Admin - add_user") == "admin_-_add_user"

    def test_truncates_to_limit(self) -> None:
        result = sanitize_test_name("x" * 300)
        assert len(result) == MAX_SANITIZED_LENGTH

    def test_only_disallowed_characters_gives_empty_string(self) -> None:
        assert sanitize_test_name("!!!@@@###") == ""

    def test_empty_string(self) -> None:
        assert sanitize_test_name("") == ""

    def test_unicode_is_dropped(self) -> None:
        assert sanitize_test_name("Café ✓ check") == "caf_check"

    @pytest.mark.parametrize(
        "test_name",
        [
            "Login test",
            "Ünïcödé / slashes \\ and | pipes",
            "../../etc/passwd",
            "  leading and trailing  ",
            "tab\tseparated\tname",
            "Ω" * 500,
            "MiXeD CaSe 123 " * 20,
        ],
    )
    def test_output_is_always_safe(self, test_name: str) -> None:
        result = sanitize_test_name(test_name)
        assert SAFE_NAME.match(result)
        assert len(result) <= MAX_SANITIZED_LENGTH

    def test_deterministic(self) -> None:
        name = "Dashboard: widgets (v2) render"
        assert sanitize_test_name(name) == sanitize_test_name(name)


class TestTimestampsAndIds:
    """Test directory timestamps and test ids."""

    def test_directory_timestamp_is_filesystem_safe(self) -> None:
        instant = datetime(2024, 3, 5, 14, 7, 9, 123456, tzinfo=UTC)
        stamp = directory_timestamp(instant)
        assert stamp == "2024-03-05T14-07-09-123Z"
        assert ":" not in stamp
        assert "." not in stamp

    def test_directory_timestamp_has_millisecond_resolution(self) -> None:
        first = datetime(2024, 3, 5, 14, 7, 9, 1000, tzinfo=UTC)
        second = datetime(2024, 3, 5, 14, 7, 9, 2000, tzinfo=UTC)
        assert directory_timestamp(first) != directory_timestamp(second)

    def test_epoch_millis(self) -> None:
        assert epoch_millis(datetime(1970, 1, 1, 0, 0, 1, 500000, tzinfo=UTC)) == 1500

    def test_build_test_id(self) -> None:
        instant = datetime(1970, 1, 1, 0, 0, 2, tzinfo=UTC)
        assert build_test_id(Suite.DASHBOARD, "loads", instant) == "Dashboard_loads_2000"


class TestMapRunnerStatus:
    """Test mapping of runner status vocabulary."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("passed", ExecutionStatus.PASSED),
            ("failed", ExecutionStatus.FAILED),
            ("skipped", ExecutionStatus.SKIPPED),
            ("timedOut", ExecutionStatus.BLOCKED),
            ("interrupted", ExecutionStatus.BLOCKED),
            ("BLOCKED", ExecutionStatus.BLOCKED),
            ("PASSED", ExecutionStatus.PASSED),
        ],
    )
    def test_known_statuses(self, raw: str, expected: ExecutionStatus) -> None:
        assert map_runner_status(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "flaky", "unknown"])
    def test_unknown_statuses_default_to_skipped(self, raw: str | None) -> None:
        assert map_runner_status(raw) == ExecutionStatus.SKIPPED
