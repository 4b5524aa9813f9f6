"""Exceptions raised by pytest-partition.

All errors derive from PartitionError so callers can handle the whole family
in one place.
"""

from __future__ import annotations


class PartitionError(Exception):
    """Base class for pytest-partition errors."""


class ConfigurationError(PartitionError, ValueError):
    """Raised when the partitioning configuration cannot be satisfied.

    Examples are a non-positive group count, an unknown grouping mode, or a
    runtime log that exists but cannot be read.
    """


class FileAccessError(PartitionError):
    """Raised when a specific test file cannot be inspected.

    Attributes:
        file_id: Identifier of the file that could not be accessed.
        reason: Human-readable cause, usually the OS error message.
    """

    def __init__(self, file_id: str, reason: str) -> None:
        self.file_id = file_id
        self.reason = reason
        super().__init__(f'Cannot access test file {file_id!r}: {reason}')
