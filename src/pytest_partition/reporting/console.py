"""Console reporter for partitioned test runs.

Produces human-readable output for terminal display: the group plan before
the run, and each group's output plus a summary after it.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, TextIO


if TYPE_CHECKING:
    from collections.abc import Sequence

    from pytest_partition.grouping.groups import Group
    from pytest_partition.runner.aggregator import ResultAggregator


def _format_load(load: float) -> str:
    """Format a group load without a pointless fractional part.

    Example:
        >>> _format_load(400)
        '400'
        >>> _format_load(1.23456)
        '1.23'
    """
    if float(load).is_integer():
        return str(int(load))
    return f'{load:.2f}'


class ConsoleReporter:
    """Reporter that writes group plans and run results to the console.

    Produces output in the following format:

        ==================== pytest-partition ====================
        4 files in 2 groups, weighted by filesize

        group 1: 2 files, load 400
        group 2: 2 files, load 400
        ==========================================================

    Attributes:
        output: The file-like object to write to.
    """

    BORDER_CHAR = '='
    BORDER_WIDTH = 70

    def __init__(self, output: TextIO | None = None) -> None:
        """Initialize the console reporter.

        Args:
            output: File-like object to write to. Defaults to sys.stdout.
        """
        self.output = output or sys.stdout

    def write_plan(self, groups: Sequence[Group], weighted_by: str, show_files: bool = False) -> None:
        """Write the group plan.

        Args:
            groups: Groups returned by the partitioner.
            weighted_by: Name of the weight source (or mode) used.
            show_files: Also list every file under its group.
        """
        total = sum(len(group) for group in groups)
        self._write_header(' pytest-partition ')
        self._write_line(f'{total} files in {len(groups)} groups, weighted by {weighted_by}')
        self._write_blank_line()
        for group in groups:
            self._write_line(f'group {group.index + 1}: {len(group)} files, load {_format_load(group.load)}')
            if show_files:
                for file_id in group.files:
                    self._write_line(f'  {file_id}')
        self._write_footer()

    def write_results(self, aggregator: ResultAggregator) -> None:
        """Write each group's captured output followed by a summary.

        Args:
            aggregator: Aggregator holding the finished groups.
        """
        results = aggregator.get_results()
        for result in results:
            if not result.files:
                continue
            self._write_header(f' group {result.index + 1} ')
            self.output.write(result.output)
            if result.output and not result.output.endswith('\n'):
                self._write_blank_line()

        self._write_header(' summary ')
        self._write_line(
            f'{len(results)} groups, {aggregator.file_count} files, {aggregator.failed_count} groups failed'
        )
        for result in results:
            if result.timed_out:
                self._write_line(f'group {result.index + 1} timed out after {result.duration:.2f}s')
            elif not result.passed:
                self._write_line(f'group {result.index + 1} failed with exit code {result.exit_code}')
        slowest = aggregator.slowest()
        if slowest is not None:
            self._write_line(f'slowest group: {slowest.index + 1} ({slowest.duration:.2f}s)')
        self._write_footer()

    def _write_header(self, title: str) -> None:
        """Write a section header with the title centred in the border."""
        padding = self.BORDER_WIDTH - len(title)
        left = padding // 2
        right = padding - left
        self._write_line(f'{self.BORDER_CHAR * left}{title}{self.BORDER_CHAR * right}')

    def _write_footer(self) -> None:
        self._write_line(self.BORDER_CHAR * self.BORDER_WIDTH)

    def _write_line(self, text: str) -> None:
        self.output.write(text + '\n')

    def _write_blank_line(self) -> None:
        self.output.write('\n')
