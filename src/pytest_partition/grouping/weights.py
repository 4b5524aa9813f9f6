"""Weight sources for test files.

A weight source turns a file identifier into a non-negative cost. Exactly one
source is selected per partitioning call, by walking an ordered chain:
runtime history first, then file size. The uniform source is only used when
asked for explicitly.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Protocol

from pytest_partition.errors import ConfigurationError, FileAccessError
from pytest_partition.grouping.groups import GroupingMode


if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from pytest_partition.history.log import RuntimeLog


logger = logging.getLogger(__name__)


def file_size(file_id: str) -> int:
    """Return the size of a file in bytes.

    Args:
        file_id: Path of the file.

    Returns:
        Size in bytes as reported by the filesystem.

    Raises:
        FileAccessError: If the file cannot be stat'ed (for instance because
            it vanished after discovery).
    """
    try:
        return os.stat(file_id).st_size
    except OSError as exc:
        raise FileAccessError(file_id, exc.strerror or str(exc)) from exc


class WeightSource(Protocol):
    """Protocol for per-file weight lookups."""

    name: str

    def weight(self, file_id: str) -> float:
        """Return the non-negative weight of a file."""
        ...


class RuntimeHistoryWeights:
    """Weights from the last recorded duration of each file.

    Files without a recorded duration weigh 0.
    """

    name = 'runtime'

    def __init__(self, log: RuntimeLog) -> None:
        self._log = log

    def weight(self, file_id: str) -> float:
        duration = self._log.lookup(file_id)
        return 0 if duration is None else duration


class FileSizeWeights:
    """Weights from file sizes in bytes.

    Sizes are cached for the lifetime of the instance, which is a single
    partitioning call.
    """

    name = 'filesize'

    def __init__(self, size_of: Callable[[str], int] = file_size) -> None:
        self._size_of = size_of
        self._cache: dict[str, int] = {}

    def weight(self, file_id: str) -> float:
        if file_id not in self._cache:
            self._cache[file_id] = self._size_of(file_id)
        return self._cache[file_id]


class UniformWeights:
    """Every file weighs 1."""

    name = 'uniform'

    def weight(self, file_id: str) -> float:  # noqa: ARG002
        return 1


def _has_history_for(history: RuntimeLog | None, files: Sequence[str]) -> bool:
    return history is not None and any(f in history for f in files)


def select_weight_source(
    files: Sequence[str],
    mode: GroupingMode,
    history: RuntimeLog | None = None,
    size_of: Callable[[str], int] = file_size,
) -> WeightSource | None:
    """Pick the weight source for one partitioning call.

    Args:
        files: Candidate file identifiers.
        mode: Requested grouping mode.
        history: Loaded runtime log, or None when no history is available.
        size_of: File size collaborator.

    Returns:
        The selected weight source, or None for round-robin (FOUND) mode.

    Raises:
        ConfigurationError: If RUNTIME mode was requested but the history has
            no entry for any of the files.
    """
    source: WeightSource | None
    if mode is GroupingMode.FOUND:
        source = None
    elif mode is GroupingMode.UNIFORM:
        source = UniformWeights()
    elif mode is GroupingMode.FILESIZE:
        source = FileSizeWeights(size_of)
    elif mode is GroupingMode.RUNTIME:
        if history is None or (files and not _has_history_for(history, files)):
            msg = 'Runtime grouping requested but no runtime history is available for these files'
            raise ConfigurationError(msg)
        source = RuntimeHistoryWeights(history)
    elif _has_history_for(history, files):
        source = RuntimeHistoryWeights(history)  # type: ignore[arg-type]
    else:
        source = FileSizeWeights(size_of)

    logger.debug(
        'Grouping %d files in %s mode using %s weights',
        len(files),
        mode.value,
        source.name if source is not None else 'no',
    )
    return source
