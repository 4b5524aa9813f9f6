"""Test file discovery.

This module turns the paths given on the command line into the ordered list of
test files the partitioner works on.
"""

from __future__ import annotations

import fnmatch
import os
from pathlib import Path
from typing import TYPE_CHECKING

from pytest_partition.errors import FileAccessError


if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence


DEFAULT_PATTERNS: tuple[str, ...] = ('test_*.py', '*_test.py')
SKIPPED_DIRS = frozenset(('__pycache__', 'node_modules'))


def _matches(name: str, patterns: Sequence[str]) -> bool:
    return any(fnmatch.fnmatch(name, pattern) for pattern in patterns)


def _is_excluded(file_id: str, exclude: Sequence[str]) -> bool:
    return any(fnmatch.fnmatch(file_id, pattern) for pattern in exclude)


def _walk(root: Path, patterns: Sequence[str]) -> Iterator[Path]:
    """Yield matching files below root, directories and files in sorted order."""
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith('.') and d not in SKIPPED_DIRS)
        for filename in sorted(filenames):
            if _matches(filename, patterns):
                yield Path(dirpath) / filename


def find_test_files(
    paths: Iterable[str | Path],
    patterns: Sequence[str] = DEFAULT_PATTERNS,
    exclude: Sequence[str] = (),
) -> list[str]:
    """Find test files under the given paths.

    Files named directly are kept whether or not they match the patterns.
    Directories are searched recursively, skipping hidden directories and
    ``__pycache__``.

    Args:
        paths: Files and directories to search.
        patterns: Glob patterns a file name must match inside directories.
        exclude: Glob patterns matched against the full path to drop files.

    Returns:
        File identifiers in discovery order, each listed once.

    Raises:
        FileAccessError: If a path does not exist.
    """
    found: dict[str, None] = {}

    for path in paths:
        root = Path(path)
        if root.is_dir():
            candidates: Iterable[Path] = _walk(root, patterns)
        elif root.is_file():
            candidates = [root]
        else:
            raise FileAccessError(str(path), 'no such file or directory')

        for candidate in candidates:
            file_id = candidate.as_posix()
            if not _is_excluded(file_id, exclude):
                found.setdefault(file_id, None)

    return list(found)
