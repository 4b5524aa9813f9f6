"""Parallel execution module for pytest-partition.

This module provides components for running groups of test files in parallel:

- GroupPool: Runs one pytest process per group
- ResultAggregator: Collects results from the group processes
"""

from pytest_partition.runner.aggregator import ResultAggregator
from pytest_partition.runner.pool import GroupPool, GroupResult


__all__ = ['GroupPool', 'GroupResult', 'ResultAggregator']
