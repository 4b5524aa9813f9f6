"""pytest plugin for pytest-partition.

Registers the option that makes a pytest run record per-file durations, so
later partitioning calls can balance groups by runtime.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pytest_partition.history.recorder import RuntimeRecorder


if TYPE_CHECKING:
    import pytest


RECORDER_PLUGIN_NAME = 'partition-runtime-recorder'


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add command-line options for pytest-partition."""
    group = parser.getgroup('partition', 'split test files into balanced groups')
    group.addoption(
        '--partition-runtime-log',
        action='store',
        default=None,
        dest='partition_runtime_log',
        metavar='PATH',
        help='Record per-file test durations into this runtime log',
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register the runtime recorder when a runtime log was requested."""
    log_path = config.getoption('partition_runtime_log')
    if log_path and not config.pluginmanager.has_plugin(RECORDER_PLUGIN_NAME):
        recorder = RuntimeRecorder(log_path, config.rootpath, config.invocation_params.dir)
        config.pluginmanager.register(recorder, RECORDER_PLUGIN_NAME)
