"""Group and grouping-mode types.

A Group is one worker's share of the test files. Groups are built by the
distribution strategies and returned frozen, with their members sorted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pytest_partition.errors import ConfigurationError


class GroupingMode(Enum):
    """How test files are weighted before being distributed.

    Attributes:
        BALANCED: Runtime history when available, file size otherwise.
        RUNTIME: Runtime history only; missing history is an error.
        FILESIZE: File size in bytes.
        UNIFORM: Every file weighs the same.
        FOUND: No weighting, round-robin in discovery order.
    """

    BALANCED = 'balanced'
    RUNTIME = 'runtime'
    FILESIZE = 'filesize'
    UNIFORM = 'uniform'
    FOUND = 'found'

    @classmethod
    def from_value(cls, value: str | GroupingMode) -> GroupingMode:
        """Parse a mode name, accepting enum members unchanged.

        Raises:
            ConfigurationError: If the name is not a known mode.

        Example:
            >>> GroupingMode.from_value('Found')
            <GroupingMode.FOUND: 'found'>
        """
        if isinstance(value, GroupingMode):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ', '.join(m.value for m in cls)
            msg = f'Unknown grouping mode: {value!r}. Valid modes are: {valid}'
            raise ConfigurationError(msg) from None


@dataclass(frozen=True)
class Group:
    """A group of test files assigned to one worker.

    Attributes:
        index: Zero-based position of the group.
        files: Member file identifiers in ascending lexical order.
        load: Sum of the members' weights.
    """

    index: int
    files: tuple[str, ...] = field(default_factory=tuple)
    load: float = 0

    def __len__(self) -> int:
        return len(self.files)

    @property
    def is_empty(self) -> bool:
        """Return True when no files were assigned to this group."""
        return not self.files
