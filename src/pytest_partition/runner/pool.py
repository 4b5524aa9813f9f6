"""Worker pool that runs each group in its own pytest process.

Every group becomes one ``python -m pytest <files>`` subprocess. The pool
uses threads only to wait on those subprocesses, so the actual parallelism
comes from the child processes.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
import logging
import os
import subprocess
import sys
import time
from typing import TYPE_CHECKING, Self


if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from pytest_partition.grouping.groups import Group


logger = logging.getLogger(__name__)

TEST_ENV_NUMBER = 'TEST_ENV_NUMBER'
GROUP_COUNT_VAR = 'PARALLEL_TEST_GROUPS'


def env_number_for(index: int) -> str:
    """Return the TEST_ENV_NUMBER value for a zero-based group index.

    The first group gets an empty string, later groups '2', '3', ... so the
    first worker can keep using unsuffixed resources.

    Example:
        >>> [env_number_for(i) for i in range(3)]
        ['', '2', '3']
    """
    return '' if index == 0 else str(index + 1)


@dataclass(frozen=True)
class GroupResult:
    """Result of running one group.

    Attributes:
        index: Zero-based index of the group.
        files: Test files in the group.
        exit_code: pytest exit code, -1 if the process could not be started.
        duration: Wall-clock time in seconds.
        output: Captured stdout and stderr.
        timed_out: Whether the process was killed after the timeout.
    """

    index: int
    files: tuple[str, ...]
    exit_code: int
    duration: float = 0.0
    output: str = ''
    timed_out: bool = False

    @property
    def passed(self) -> bool:
        """Return True when the group finished with exit code 0."""
        return self.exit_code == 0 and not self.timed_out


def build_command(files: Sequence[str], pytest_args: Sequence[str] = ()) -> list[str]:
    """Return the command line that runs pytest on the given files."""
    return [sys.executable, '-m', 'pytest', *pytest_args, *files]


def _run_group(
    index: int,
    files: tuple[str, ...],
    command: list[str],
    rootdir: str,
    env_vars: dict[str, str],
    timeout: float | None,
) -> GroupResult:
    """Execute one group's pytest process and wait for it."""
    if not files:
        return GroupResult(index=index, files=files, exit_code=0)

    env = os.environ.copy()
    env.update(env_vars)
    env[TEST_ENV_NUMBER] = env_number_for(index)

    logger.info('Starting group %d with %d files', index + 1, len(files))
    start_time = time.monotonic()
    try:
        result = subprocess.run(  # noqa: S603
            command,
            cwd=rootdir,
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        duration = time.monotonic() - start_time
        logger.warning('Group %d timed out after %.1fs', index + 1, duration)
        output = exc.stdout.decode(errors='replace') if isinstance(exc.stdout, bytes) else exc.stdout or ''
        return GroupResult(index=index, files=files, exit_code=-1, duration=duration, output=output, timed_out=True)
    except OSError as exc:
        duration = time.monotonic() - start_time
        logger.warning('Could not start group %d: %s', index + 1, exc)
        return GroupResult(index=index, files=files, exit_code=-1, duration=duration, output=str(exc))

    duration = time.monotonic() - start_time
    logger.info('Group %d finished with exit code %d in %.2fs', index + 1, result.returncode, duration)
    return GroupResult(
        index=index,
        files=files,
        exit_code=result.returncode,
        duration=duration,
        output=result.stdout or '',
    )


class GroupPool:
    """Runs groups of test files concurrently.

    Attributes:
        max_workers: Maximum number of groups running at once.
        timeout: Timeout in seconds for each group, or None for no limit.

    Example:
        >>> with GroupPool(max_workers=4) as pool:
        ...     # Submit groups to pool
        ...     pass
    """

    def __init__(
        self,
        max_workers: int | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the pool.

        Args:
            max_workers: Maximum number of concurrent groups. Defaults to CPU count.
            timeout: Timeout in seconds for each group. Defaults to no limit.
        """
        self._max_workers = max_workers if max_workers is not None else (os.cpu_count() or 4)
        self._timeout = timeout
        self._executor: ThreadPoolExecutor | None = None
        self._shutdown_called = False

    @property
    def max_workers(self) -> int:
        """Return the maximum number of workers."""
        return self._max_workers

    @property
    def timeout(self) -> float | None:
        """Return the per-group timeout in seconds."""
        return self._timeout

    def __enter__(self) -> Self:
        """Enter the context manager, starting the pool."""
        self._executor = ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix='partition-group')
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit the context manager, shutting down the pool."""
        self.shutdown(wait=True)

    def shutdown(self, wait: bool = True) -> None:
        """Shutdown the pool.

        Args:
            wait: If True, wait for running groups to finish. If False, cancel
                  groups that have not started yet.
        """
        if self._shutdown_called:
            return

        self._shutdown_called = True
        if self._executor is not None:
            self._executor.shutdown(wait=wait, cancel_futures=not wait)
            self._executor = None

    def submit(
        self,
        group: Group,
        rootdir: str,
        pytest_args: Sequence[str] = (),
        env_vars: Mapping[str, str] | None = None,
    ) -> Future[GroupResult]:
        """Submit a group for execution.

        Args:
            group: The group to run.
            rootdir: Working directory for the pytest process.
            pytest_args: Extra arguments passed to pytest before the files.
            env_vars: Additional environment variables to set.

        Returns:
            Future that will contain the GroupResult when complete.

        Raises:
            RuntimeError: If the pool is not active (not in context).
        """
        if self._executor is None:
            msg = 'GroupPool is not active. Use as context manager.'
            raise RuntimeError(msg)

        return self._executor.submit(
            _run_group,
            group.index,
            group.files,
            build_command(group.files, pytest_args),
            rootdir,
            dict(env_vars or {}),
            self._timeout,
        )
