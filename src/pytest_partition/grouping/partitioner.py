"""Partition test files into balanced groups.

The Partitioner picks one weight source for the call, distributes the files
with either LPT (weighted modes) or round-robin (FOUND mode), and returns
frozen groups whose members are sorted by identifier.

Example:
    >>> from pytest_partition.history.log import RuntimeLog
    >>> log = RuntimeLog({'a': 3.0, 'b': 2.0, 'c': 2.0, 'd': 1.0})
    >>> groups = partition(['a', 'b', 'c', 'd'], 2, history=log)
    >>> [g.files for g in groups]
    [('a', 'd'), ('b', 'c')]
    >>> [g.load for g in groups]
    [4.0, 4.0]
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pytest_partition.errors import ConfigurationError
from pytest_partition.grouping.distribution import (
    DistributionStrategy,
    RoundRobinDistribution,
    WeightedDistribution,
    group_loads,
)
from pytest_partition.grouping.groups import Group, GroupingMode
from pytest_partition.grouping.weights import file_size, select_weight_source
from pytest_partition.history.log import DEFAULT_RUNTIME_LOG, RuntimeLog


if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

    from pytest_partition.grouping.weights import WeightSource


class Partitioner:
    """Splits test files into a fixed number of groups.

    Attributes:
        mode: Grouping mode used for every call.
        history: Runtime log consulted for RUNTIME and BALANCED modes.

    Example:
        >>> partitioner = Partitioner(mode='found')
        >>> [g.files for g in partitioner.partition(['f1', 'f2', 'f3', 'f4'], 2)]
        [('f1', 'f3'), ('f2', 'f4')]
    """

    def __init__(
        self,
        mode: GroupingMode | str = GroupingMode.BALANCED,
        history: RuntimeLog | None = None,
        size_of: Callable[[str], int] = file_size,
    ) -> None:
        """Initialize the partitioner.

        Args:
            mode: Grouping mode, as an enum member or its name.
            history: Loaded runtime log, or None when there is no history.
            size_of: File size collaborator, defaults to os.stat.
        """
        self.mode = GroupingMode.from_value(mode)
        self.history = history
        self._size_of = size_of

    @classmethod
    def from_runtime_log(
        cls,
        mode: GroupingMode | str = GroupingMode.BALANCED,
        runtime_log_path: Path | str | None = None,
        size_of: Callable[[str], int] = file_size,
    ) -> Partitioner:
        """Create a partitioner, loading history from a runtime log file.

        The log is only read for modes that can use it. A missing log means no
        history; an unreadable one raises ConfigurationError.
        """
        grouping_mode = GroupingMode.from_value(mode)
        history = None
        if runtime_log_path is not None and grouping_mode in (GroupingMode.BALANCED, GroupingMode.RUNTIME):
            history = RuntimeLog.load(runtime_log_path)
        return cls(grouping_mode, history=history, size_of=size_of)

    def weight_source_for(self, files: Sequence[str]) -> WeightSource | None:
        """Return the weight source this partitioner would use for files.

        Returns None in FOUND mode, where files are not weighted.
        """
        return select_weight_source(files, self.mode, self.history, self._size_of)

    def _strategy_for(self, weights: WeightSource | None) -> DistributionStrategy:
        if weights is None:
            return RoundRobinDistribution()
        return WeightedDistribution()

    def plan(self, files: Sequence[str], group_count: int) -> tuple[list[Group], WeightSource | None]:
        """Split files into group_count groups and report how they were weighted.

        Args:
            files: File identifiers in discovery order.
            group_count: Number of groups to return.

        Returns:
            The groups and the weight source used to build them, None in FOUND
            mode.

        Raises:
            ConfigurationError: If group_count is not positive, or the mode
                requires runtime history that is not available.
            FileAccessError: If a file's size cannot be read.
        """
        if group_count <= 0:
            msg = f'group_count must be positive, got {group_count}'
            raise ConfigurationError(msg)

        files = list(files)
        weights = self.weight_source_for(files)
        buckets = self._strategy_for(weights).distribute(files, group_count, weights)
        loads = group_loads(buckets, weights)

        groups = [
            Group(index=index, files=tuple(sorted(bucket)), load=load)
            for index, (bucket, load) in enumerate(zip(buckets, loads, strict=True))
        ]
        return groups, weights

    def partition(self, files: Sequence[str], group_count: int) -> list[Group]:
        """Split files into group_count groups.

        Args:
            files: File identifiers in discovery order.
            group_count: Number of groups to return.

        Returns:
            Exactly group_count groups. Every input file appears in exactly one
            group, and each group's files are sorted ascending.

        Raises:
            ConfigurationError: If group_count is not positive, or the mode
                requires runtime history that is not available.
            FileAccessError: If a file's size cannot be read.
        """
        groups, _ = self.plan(files, group_count)
        return groups


def partition(
    files: Sequence[str],
    group_count: int,
    mode: GroupingMode | str = GroupingMode.BALANCED,
    runtime_log_path: Path | str | None = DEFAULT_RUNTIME_LOG,
    *,
    history: RuntimeLog | None = None,
    size_of: Callable[[str], int] = file_size,
) -> list[Group]:
    """Split files into balanced groups.

    Convenience wrapper around Partitioner. Pass either a runtime_log_path to
    load history from disk or an already loaded history.

    Args:
        files: File identifiers in discovery order.
        group_count: Number of groups to return.
        mode: Grouping mode, as an enum member or its name.
        runtime_log_path: Runtime log to load history from. Relative paths are
            resolved against the working directory; None disables history.
        history: Already loaded runtime log. Takes precedence over the path.
        size_of: File size collaborator.

    Returns:
        Exactly group_count groups with sorted members.
    """
    if history is not None:
        partitioner = Partitioner(mode, history=history, size_of=size_of)
    else:
        partitioner = Partitioner.from_runtime_log(mode, runtime_log_path, size_of=size_of)
    return partitioner.partition(files, group_count)
