"""Tally: hierarchical test-execution result store.

Records one directory per test execution and keeps a rolling summary
per suite. See ``tally.main`` for the composition root.
"""

__version__ = "1.0.0"
