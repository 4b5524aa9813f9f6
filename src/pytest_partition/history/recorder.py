"""Record per-file test durations into the runtime log.

The RuntimeRecorder is registered as a pytest plugin in each worker when
``--partition-runtime-log`` is given. It sums the setup, call and teardown
durations of every test per test file, then merges the totals into the log
at the end of the session.
"""

from __future__ import annotations

from collections import defaultdict
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from pytest_partition.history.log import RuntimeLog


if TYPE_CHECKING:
    import pytest


logger = logging.getLogger(__name__)


def report_file_id(report: pytest.TestReport) -> str:
    """Return the test file part of a report's node id.

    Example:
        >>> from types import SimpleNamespace
        >>> report_file_id(SimpleNamespace(nodeid='tests/test_a.py::TestX::test_y'))
        'tests/test_a.py'
    """
    return report.nodeid.split('::', 1)[0]


class RuntimeRecorder:
    """pytest plugin that times test files.

    Node ids are relative to the pytest rootdir, while discovery names files
    relative to the directory pytest was started from. When both directories
    are given, recorded file ids are rebased onto the invocation directory so
    they match the discovered paths.

    Attributes:
        log_path: Runtime log the durations are merged into.
        rootdir: pytest rootdir the node ids are relative to.
        invocation_dir: Directory the file ids are made relative to.
    """

    def __init__(
        self,
        log_path: Path | str,
        rootdir: Path | None = None,
        invocation_dir: Path | None = None,
    ) -> None:
        self.log_path = Path(log_path)
        self.rootdir = rootdir
        self.invocation_dir = invocation_dir
        self._durations: defaultdict[str, float] = defaultdict(float)

    def file_id_for(self, report: pytest.TestReport) -> str:
        """Return the file id a report's duration is recorded under.

        Example:
            >>> from types import SimpleNamespace
            >>> recorder = RuntimeRecorder('runtime.log', Path('/repo'), Path('/repo/pkg'))
            >>> recorder.file_id_for(SimpleNamespace(nodeid='pkg/tests/test_a.py::test_x'))
            'tests/test_a.py'
        """
        file_part = report_file_id(report)
        if self.rootdir is None or self.invocation_dir is None:
            return file_part
        return Path(os.path.relpath(self.rootdir / file_part, self.invocation_dir)).as_posix()

    @property
    def durations(self) -> dict[str, float]:
        """Return the accumulated duration of each file seen so far."""
        return dict(self._durations)

    def pytest_runtest_logreport(self, report: pytest.TestReport) -> None:
        """Accumulate the duration of one test phase."""
        self._durations[self.file_id_for(report)] += report.duration

    def pytest_sessionfinish(self, session: pytest.Session) -> None:  # noqa: ARG002
        """Merge the recorded durations into the runtime log on disk."""
        if not self._durations:
            return
        self.write()

    def write(self) -> Path:
        """Merge the recorded durations into the log file and save it.

        Entries already in the log for other files are kept.

        Returns:
            The path written to.
        """
        log = RuntimeLog.load(self.log_path) or RuntimeLog(path=self.log_path)
        for file_id, seconds in sorted(self._durations.items()):
            log.record(file_id, seconds)
        path = log.save(self.log_path)
        logger.info('Recorded runtime of %d test files in %s', len(self._durations), path)
        return path
