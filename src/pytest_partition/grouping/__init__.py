"""Grouping module for pytest-partition.

This module provides the components that split test files into groups:

- Partitioner: Selects a weight source and builds the groups
- WeightSource: Per-file cost from runtime history, file size, or uniform
- DistributionStrategy: Assigns weighted files to groups
"""

from pytest_partition.grouping.distribution import RoundRobinDistribution, WeightedDistribution
from pytest_partition.grouping.groups import Group, GroupingMode
from pytest_partition.grouping.partitioner import Partitioner, partition
from pytest_partition.grouping.weights import (
    FileSizeWeights,
    RuntimeHistoryWeights,
    UniformWeights,
    file_size,
    select_weight_source,
)


__all__ = [
    'FileSizeWeights',
    'Group',
    'GroupingMode',
    'Partitioner',
    'RoundRobinDistribution',
    'RuntimeHistoryWeights',
    'UniformWeights',
    'WeightedDistribution',
    'file_size',
    'partition',
    'select_weight_source',
]
