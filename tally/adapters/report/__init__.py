"""Run report adapters for summarizing a whole test run."""
