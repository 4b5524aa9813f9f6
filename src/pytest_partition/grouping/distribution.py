"""Test file distribution strategies.

This module provides strategies for distributing test files across groups so
that each group can run in its own worker process.
"""

from __future__ import annotations

import heapq
from typing import TYPE_CHECKING, Protocol


if TYPE_CHECKING:
    from collections.abc import Sequence

    from pytest_partition.grouping.weights import WeightSource


class DistributionStrategy(Protocol):
    """Protocol for test file distribution strategies.

    Implementations partition file identifiers into buckets, one per group.
    """

    def distribute(
        self,
        files: Sequence[str],
        num_groups: int,
        weights: WeightSource | None = None,
    ) -> list[list[str]]:
        """Distribute files across groups.

        Args:
            files: File identifiers in discovery order.
            num_groups: Number of groups to fill.
            weights: Optional weight source for the files.

        Returns:
            List of num_groups buckets, each holding the files for that group.
        """
        ...


class RoundRobinDistribution:
    """Simple round-robin distribution strategy.

    Assigns file i to group i % num_groups, in discovery order. Fast and
    deterministic, but doesn't account for varying execution times.

    Example:
        >>> strategy = RoundRobinDistribution()
        >>> strategy.distribute(['a', 'b', 'c', 'd', 'e'], num_groups=3)
        [['a', 'd'], ['b', 'e'], ['c']]
    """

    def distribute(
        self,
        files: Sequence[str],
        num_groups: int,
        weights: WeightSource | None = None,  # noqa: ARG002
    ) -> list[list[str]]:
        """Distribute files round-robin across groups.

        Args:
            files: File identifiers in discovery order.
            num_groups: Number of groups to fill.
            weights: Ignored for round-robin distribution.

        Returns:
            List of num_groups buckets with files distributed round-robin.
        """
        buckets: list[list[str]] = [[] for _ in range(num_groups)]

        for i, file_id in enumerate(files):
            buckets[i % num_groups].append(file_id)

        return buckets


class WeightedDistribution:
    """Longest-processing-time-first distribution.

    Sorts files by weight descending, then assigns each file to the group with
    the smallest current load. Equal weights keep their discovery order. Equal
    loads go to the group with fewer files, then to the lowest group index, so
    the result is reproducible. Zero-weight files never raise a group's load,
    so the fewer-files rule spreads them across groups by count instead of
    piling them into group 0.

    Example:
        >>> from pytest_partition.history.log import RuntimeLog
        >>> from pytest_partition.grouping.weights import RuntimeHistoryWeights
        >>> zero = RuntimeHistoryWeights(RuntimeLog({f: 0.0 for f in 'abcde'}))
        >>> WeightedDistribution().distribute(list('abcde'), num_groups=2, weights=zero)
        [['a', 'c', 'e'], ['b', 'd']]

        >>> from pytest_partition.grouping.weights import UniformWeights
        >>> strategy = WeightedDistribution()
        >>> buckets = strategy.distribute(list('abcdefgh'), num_groups=3, weights=UniformWeights())
        >>> [len(b) for b in buckets]
        [3, 3, 2]
    """

    def distribute(
        self,
        files: Sequence[str],
        num_groups: int,
        weights: WeightSource | None = None,
    ) -> list[list[str]]:
        """Distribute files by weight.

        Args:
            files: File identifiers in discovery order.
            num_groups: Number of groups to fill.
            weights: Weight source. Without one, falls back to round-robin.

        Returns:
            List of num_groups buckets with files balanced by weight.
        """
        if weights is None:
            return RoundRobinDistribution().distribute(files, num_groups)

        buckets: list[list[str]] = [[] for _ in range(num_groups)]
        if not files:
            return buckets

        weighted = [(file_id, weights.weight(file_id)) for file_id in files]
        # sorted() is stable with reverse=True, equal weights keep input order
        weighted.sort(key=lambda item: item[1], reverse=True)

        # (load, size, index): least-loaded first, then fewest files, then lowest index
        heap = [(0.0, 0, index) for index in range(num_groups)]
        for file_id, weight in weighted:
            load, size, index = heapq.heappop(heap)
            buckets[index].append(file_id)
            heapq.heappush(heap, (load + weight, size + 1, index))

        return buckets


def group_loads(buckets: Sequence[Sequence[str]], weights: WeightSource | None) -> list[float]:
    """Return the summed weight of each bucket.

    Without a weight source every bucket has load 0.
    """
    if weights is None:
        return [0 for _ in buckets]
    return [sum(weights.weight(file_id) for file_id in bucket) for bucket in buckets]
