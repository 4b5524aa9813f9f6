"""Result aggregation for parallel group execution.

This module provides the ResultAggregator class that collects the results of
the group processes as they finish.
"""

from __future__ import annotations

import threading

from pytest_partition.runner.pool import GroupResult


class ResultAggregator:
    """Aggregates results from parallel group processes.

    Thread-safe collection of results with progress tracking. Results are
    stored as they arrive and can be retrieved sorted by group index.

    Attributes:
        total_groups: Total number of groups being run.
        completed: Number of groups that have finished.

    Example:
        >>> aggregator = ResultAggregator(total_groups=2)
        >>> aggregator.add_result(GroupResult(0, ('tests/test_a.py',), exit_code=0))
        >>> aggregator.get_progress()
        (1, 2)
    """

    def __init__(self, total_groups: int) -> None:
        """Initialize the result aggregator.

        Args:
            total_groups: Total number of groups to be run.
        """
        self._total_groups = total_groups
        self._results: list[GroupResult] = []
        self._lock = threading.Lock()

    @property
    def total_groups(self) -> int:
        """Return the total number of groups."""
        return self._total_groups

    @property
    def completed(self) -> int:
        """Return the number of completed results."""
        with self._lock:
            return len(self._results)

    @property
    def failed_count(self) -> int:
        """Return the number of groups that did not pass."""
        with self._lock:
            return sum(1 for r in self._results if not r.passed)

    @property
    def file_count(self) -> int:
        """Return the number of test files across all completed groups."""
        with self._lock:
            return sum(len(r.files) for r in self._results)

    def add_result(self, result: GroupResult) -> None:
        """Add a result from a finished group.

        Args:
            result: The group's result.
        """
        with self._lock:
            self._results.append(result)

    def get_progress(self) -> tuple[int, int]:
        """Return (completed, total) group counts."""
        with self._lock:
            return len(self._results), self._total_groups

    def get_results(self) -> list[GroupResult]:
        """Return all results sorted by group index."""
        with self._lock:
            return sorted(self._results, key=lambda r: r.index)

    def slowest(self) -> GroupResult | None:
        """Return the group that took the longest, or None if none finished."""
        with self._lock:
            if not self._results:
                return None
            return max(self._results, key=lambda r: r.duration)

    def exit_code(self) -> int:
        """Return the overall exit code.

        The first non-zero pytest exit code in group order wins. Groups that
        timed out or could not be started count as exit code 1.

        Returns:
            0 if every group passed.
        """
        for result in self.get_results():
            if result.timed_out or result.exit_code < 0:
                return 1
            if result.exit_code != 0:
                return result.exit_code
        return 0
