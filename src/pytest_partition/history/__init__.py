"""Runtime history for balancing groups by recorded test durations."""

from pytest_partition.history.log import DEFAULT_RUNTIME_LOG, RuntimeLog
from pytest_partition.history.recorder import RuntimeRecorder


__all__ = ['DEFAULT_RUNTIME_LOG', 'RuntimeLog', 'RuntimeRecorder']
