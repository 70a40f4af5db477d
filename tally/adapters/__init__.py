"""External adapters for the Tally result store.

This package contains all external dependencies (filesystem layout,
file locking, pytest integration) and provides implementations of the
core port interfaces.

Adapter Organization:

- store/: Execution, suite summary and emergency log persistence
- report/: End-of-run summary reports
- pytest_plugin: Records results from a pytest session
"""
