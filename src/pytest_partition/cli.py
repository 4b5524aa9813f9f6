"""Command-line entry point for pytest-partition.

Discovers test files, splits them into groups and runs each group in its
own pytest process. Arguments after ``--`` are passed to every pytest run.
"""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
import sys
from typing import TYPE_CHECKING

from pytest_partition import __version__
from pytest_partition.config import load_config, merge_configs
from pytest_partition.discovery import find_test_files
from pytest_partition.errors import ConfigurationError, PartitionError
from pytest_partition.grouping.groups import GroupingMode
from pytest_partition.grouping.partitioner import Partitioner
from pytest_partition.history.log import RuntimeLog
from pytest_partition.reporting.console import ConsoleReporter
from pytest_partition.runner.aggregator import ResultAggregator
from pytest_partition.runner.pool import GROUP_COUNT_VAR, GroupPool


if TYPE_CHECKING:
    from collections.abc import Sequence

    from pytest_partition.config import ResolvedConfig
    from pytest_partition.grouping.groups import Group


logger = logging.getLogger(__name__)

EXIT_USAGE_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for pytest-partition."""
    parser = argparse.ArgumentParser(
        prog='pytest-partition',
        description='Split test files into balanced groups and run them in parallel pytest processes.',
        epilog='Arguments after -- are passed to every pytest process.',
    )
    parser.add_argument(
        'paths',
        nargs='*',
        default=['.'],
        help='Test files and directories to search (default: current directory)',
    )
    parser.add_argument(
        '-n',
        '--groups',
        type=int,
        default=None,
        help='Number of groups (default: PARALLEL_TEST_PROCESSORS, then CPU count)',
    )
    parser.add_argument(
        '--group-by',
        choices=[mode.value for mode in GroupingMode],
        default=None,
        help='How to weight test files (default: balanced)',
    )
    parser.add_argument(
        '--runtime-log',
        default=None,
        help='Runtime log to read durations from and record into',
    )
    parser.add_argument(
        '--pattern',
        default=None,
        help='Comma-separated test file name patterns (default: test_*.py,*_test.py)',
    )
    parser.add_argument(
        '--only-group',
        default=None,
        help='Comma-separated 1-based group numbers to run',
    )
    parser.add_argument(
        '--record-runtime',
        action='store_true',
        help='Record per-file durations into the runtime log',
    )
    parser.add_argument(
        '--timeout',
        type=float,
        default=None,
        help='Timeout in seconds for each group',
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Print the groups without running them',
    )
    parser.add_argument(
        '-v',
        '--verbose',
        action='store_true',
        help='Log partitioning details',
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def split_pytest_args(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    """Split argv at the first ``--`` into own and pytest arguments.

    Example:
        >>> split_pytest_args(['tests', '-n', '2', '--', '-x', '-q'])
        (['tests', '-n', '2'], ['-x', '-q'])
    """
    args = list(argv)
    if '--' in args:
        index = args.index('--')
        return args[:index], args[index + 1 :]
    return args, []


def parse_only_groups(value: str | None, group_count: int) -> list[int] | None:
    """Parse --only-group into zero-based indices.

    Raises:
        ConfigurationError: If a number is not an integer in 1..group_count.
    """
    if not value:
        return None
    indices: list[int] = []
    for part in value.split(','):
        part = part.strip()
        if not part:
            continue
        if not (part.isascii() and part.isdigit()) or not 1 <= int(part) <= group_count:
            msg = f'--only-group values must be between 1 and {group_count}, got {part!r}'
            raise ConfigurationError(msg)
        indices.append(int(part) - 1)
    return sorted(set(indices))


def partial_log_path(runtime_log: str | Path, index: int) -> Path:
    """Return the per-group runtime log a worker records into.

    Example:
        >>> partial_log_path('tmp/runtime.log', 1).as_posix()
        'tmp/runtime.log.group2'
    """
    path = Path(runtime_log)
    return path.with_name(f'{path.name}.group{index + 1}')


def merge_partial_logs(runtime_log: str | Path, groups: Sequence[Group]) -> None:
    """Fold the per-group runtime logs into the main log and remove them."""
    partials = [partial_log_path(runtime_log, group.index) for group in groups]
    recorded = [log for log in (RuntimeLog.load(p) for p in partials) if log is not None]
    if not recorded:
        logger.warning('No runtime was recorded, is the pytest-partition plugin installed in the workers?')
        return

    log = RuntimeLog.load(runtime_log) or RuntimeLog()
    for partial in recorded:
        log.merge(partial)
    log.save(runtime_log)
    for path in partials:
        path.unlink(missing_ok=True)
    logger.info('Merged runtime of %d groups into %s', len(recorded), runtime_log)


def run_groups(
    groups: Sequence[Group],
    config: ResolvedConfig,
    pytest_args: Sequence[str],
    record_runtime: bool = False,
    timeout: float | None = None,
    rootdir: Path | None = None,
) -> ResultAggregator:
    """Run each group in its own pytest process and collect the results.

    With record_runtime, every worker records into its own partial log and
    the partial logs are merged into the runtime log once all groups finish.
    """
    env_vars = {GROUP_COUNT_VAR: str(config.groups)}
    workdir = rootdir or Path.cwd()
    runtime_log = workdir / config.runtime_log

    aggregator = ResultAggregator(total_groups=len(groups))
    with GroupPool(max_workers=max(len(groups), 1), timeout=timeout) as pool:
        futures = []
        for group in groups:
            args = list(pytest_args)
            if record_runtime:
                args.append(f'--partition-runtime-log={partial_log_path(runtime_log, group.index)}')
            futures.append(pool.submit(group, str(workdir), args, env_vars))
        for future in futures:
            aggregator.add_result(future.result())

    if record_runtime:
        merge_partial_logs(runtime_log, groups)
    return aggregator


def main(argv: Sequence[str] | None = None) -> int:
    """Run pytest-partition from the command line.

    Returns:
        Exit code: 0 on success, the pytest exit code of the first failing
        group, or 2 on a configuration error.
    """
    own_args, pytest_args = split_pytest_args(sys.argv[1:] if argv is None else argv)
    args = build_parser().parse_args(own_args)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    try:
        file_config = load_config(Path.cwd())
        config = merge_configs(
            file_config,
            cli_groups=args.groups,
            cli_group_by=args.group_by,
            cli_runtime_log=args.runtime_log,
            cli_pattern=args.pattern,
        ).resolve(env=os.environ)

        files = find_test_files(args.paths, config.patterns, config.exclude)
        partitioner = Partitioner.from_runtime_log(config.mode, config.runtime_log)
        groups, weights = partitioner.plan(files, config.groups)
        only = parse_only_groups(args.only_group, config.groups)
    except PartitionError as e:
        print(f'Error: {e}', file=sys.stderr)
        return EXIT_USAGE_ERROR

    reporter = ConsoleReporter()
    reporter.write_plan(groups, weights.name if weights is not None else 'discovery order', show_files=args.dry_run)
    if args.dry_run:
        return 0

    if only is not None:
        groups = [groups[i] for i in only]

    aggregator = run_groups(groups, config, pytest_args, record_runtime=args.record_runtime, timeout=args.timeout)
    reporter.write_results(aggregator)
    return aggregator.exit_code()


if __name__ == '__main__':
    sys.exit(main())
