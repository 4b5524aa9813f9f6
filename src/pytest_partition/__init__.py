"""pytest-partition: Split test files into balanced groups and run them in parallel.

pytest-partition weighs each test file by its last recorded runtime (or, when
there is no history, by its size on disk), spreads the files over a fixed
number of groups with the longest-processing-time-first heuristic, and runs
every group in its own pytest process.

Example:
    Run the suite in four processes::

        $ pytest-partition tests -n 4

    Record runtimes so the next run is balanced by duration::

        $ pytest-partition tests -n 4 --record-runtime

    Show the groups without running them::

        $ pytest-partition tests -n 4 --dry-run
"""

from __future__ import annotations

from pytest_partition.errors import ConfigurationError, FileAccessError, PartitionError
from pytest_partition.grouping import Group, GroupingMode, Partitioner, partition


__version__ = '0.3.0'
__all__ = [
    'ConfigurationError',
    'FileAccessError',
    'Group',
    'GroupingMode',
    'PartitionError',
    'Partitioner',
    '__version__',
    'partition',
]
