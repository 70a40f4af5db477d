"""Core domain logic for the Tally result store.

This package contains zero external dependencies and represents
the pure business logic of the application. All adapters and
external integrations are handled by the adapters package.
"""

from .models import (
    ExecutionRecord,
    ExecutionStatus,
    RecordOptions,
    ResultEntry,
    RunStats,
    Suite,
    SuiteSummary,
)

__all__ = [
    "ExecutionRecord",
    "ExecutionStatus",
    "RecordOptions",
    "ResultEntry",
    "RunStats",
    "Suite",
    "SuiteSummary",
]
