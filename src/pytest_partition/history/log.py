"""Runtime log of per-file test durations.

The runtime log is a plain text file with one ``file_id:seconds`` entry per
line. It is written after a run and read before the next one so groups can be
balanced by how long each file actually took.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import TYPE_CHECKING

from pytest_partition.errors import ConfigurationError


if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping


logger = logging.getLogger(__name__)

DEFAULT_RUNTIME_LOG = Path('tmp') / 'parallel_runtime_pytest.log'


def parse_line(line: str) -> tuple[str, float] | None:
    """Parse a single runtime log line.

    The identifier is everything before the last colon, so paths containing
    colons survive.

    Args:
        line: A line from the runtime log.

    Returns:
        The (file_id, seconds) pair, or None if the line is malformed.

    Example:
        >>> parse_line('tests/test_a.py:1.5')
        ('tests/test_a.py', 1.5)
        >>> parse_line('garbage') is None
        True
    """
    file_id, sep, value = line.strip().rpartition(':')
    if not sep or not file_id:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    if seconds < 0 or not math.isfinite(seconds):
        return None
    return file_id, seconds


class RuntimeLog:
    """In-memory view of a runtime log.

    Attributes:
        path: File the log was loaded from, if any.

    Example:
        >>> log = RuntimeLog({'tests/test_a.py': 2.0})
        >>> log.lookup('tests/test_a.py')
        2.0
        >>> log.lookup('tests/test_b.py') is None
        True
    """

    def __init__(self, entries: Mapping[str, float] | None = None, path: Path | None = None) -> None:
        self._entries: dict[str, float] = dict(entries or {})
        self.path = path

    @classmethod
    def from_lines(cls, lines: Iterable[str], path: Path | None = None) -> RuntimeLog:
        """Build a log from text lines.

        Malformed lines are skipped. Later duplicates overwrite earlier ones.
        """
        entries: dict[str, float] = {}
        for lineno, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            parsed = parse_line(line)
            if parsed is None:
                logger.debug('Skipping malformed runtime log line %d: %r', lineno, line.rstrip('\n'))
                continue
            file_id, seconds = parsed
            entries[file_id] = seconds
        return cls(entries, path=path)

    @classmethod
    def load(cls, path: Path | str) -> RuntimeLog | None:
        """Load a runtime log from disk.

        Args:
            path: Location of the log file.

        Returns:
            The loaded log, or None if the file does not exist.

        Raises:
            ConfigurationError: If the file exists but cannot be read.
        """
        log_path = Path(path)
        try:
            with log_path.open(encoding='utf-8', errors='replace') as f:
                log = cls.from_lines(f, path=log_path)
        except FileNotFoundError:
            logger.debug('No runtime log at %s', log_path)
            return None
        except OSError as exc:
            msg = f'Runtime log {str(log_path)!r} is not readable: {exc.strerror or exc}'
            raise ConfigurationError(msg) from exc

        logger.debug('Loaded %d runtime entries from %s', len(log), log_path)
        return log

    def lookup(self, file_id: str) -> float | None:
        """Return the recorded duration of a file, or None if absent."""
        return self._entries.get(file_id)

    def record(self, file_id: str, seconds: float) -> None:
        """Record the duration of a file, replacing any previous entry.

        Raises:
            ValueError: If seconds is negative.
        """
        if seconds < 0:
            msg = f'Duration must be non-negative, got {seconds}'
            raise ValueError(msg)
        self._entries[file_id] = seconds

    def merge(self, other: RuntimeLog) -> None:
        """Copy all entries of another log into this one, overwriting."""
        self._entries.update(other._entries)

    def save(self, path: Path | str | None = None) -> Path:
        """Write the log to disk, sorted by file identifier.

        Args:
            path: Target file. Defaults to the path the log was loaded from.

        Returns:
            The path written to.
        """
        target = Path(path) if path is not None else self.path
        if target is None:
            msg = 'No path given and the runtime log was not loaded from a file'
            raise ValueError(msg)

        target.parent.mkdir(parents=True, exist_ok=True)
        lines = [f'{file_id}:{seconds}\n' for file_id, seconds in sorted(self._entries.items())]
        target.write_text(''.join(lines), encoding='utf-8')
        return target

    def __contains__(self, file_id: object) -> bool:
        return file_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)
