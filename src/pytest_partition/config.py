"""Configuration loading for pytest-partition.

This module reads configuration from pyproject.toml [tool.pytest-partition]
section, merges command-line values over it, and resolves the defaults into
the explicit settings the partitioner and runner are called with.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
import tomllib
from typing import TYPE_CHECKING, Any

from pytest_partition.discovery import DEFAULT_PATTERNS
from pytest_partition.errors import ConfigurationError
from pytest_partition.grouping.groups import GroupingMode
from pytest_partition.history.log import DEFAULT_RUNTIME_LOG


if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path


GROUP_COUNT_ENV = 'PARALLEL_TEST_PROCESSORS'


@dataclass
class PartitionConfig:
    """Configuration for pytest-partition.

    All fields are optional and default to None, meaning the built-in default
    applies. Call resolve() to get fully populated settings.

    Attributes:
        groups: Number of groups (worker processes).
        group_by: Grouping mode name.
        runtime_log: Path of the runtime log.
        patterns: Glob patterns test file names must match.
        exclude: Glob patterns for test files to skip.
    """

    groups: int | None = None
    group_by: str | None = None
    runtime_log: str | None = None
    patterns: list[str] | None = None
    exclude: list[str] | None = None

    def resolve(self, env: Mapping[str, str] | None = None) -> ResolvedConfig:
        """Fill defaults and validate.

        Args:
            env: Environment to read PARALLEL_TEST_PROCESSORS from when no
                group count is configured. Only the CLI layer passes this.

        Raises:
            ConfigurationError: If a value is invalid.
        """
        groups = self.groups
        if groups is None and env is not None and env.get(GROUP_COUNT_ENV):
            groups = _parse_int(env[GROUP_COUNT_ENV], GROUP_COUNT_ENV)
        if groups is None:
            groups = os.cpu_count() or 1
        if groups <= 0:
            msg = f'groups must be positive, got {groups}'
            raise ConfigurationError(msg)

        return ResolvedConfig(
            groups=groups,
            mode=GroupingMode.from_value(self.group_by or GroupingMode.BALANCED),
            runtime_log=self.runtime_log or str(DEFAULT_RUNTIME_LOG),
            patterns=tuple(self.patterns) if self.patterns else DEFAULT_PATTERNS,
            exclude=tuple(self.exclude or ()),
        )


@dataclass(frozen=True)
class ResolvedConfig:
    """Fully resolved settings passed to the partitioner and runner."""

    groups: int
    mode: GroupingMode
    runtime_log: str
    patterns: tuple[str, ...] = DEFAULT_PATTERNS
    exclude: tuple[str, ...] = field(default_factory=tuple)


def _parse_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        msg = f'{name} must be an integer, got {value!r}'
        raise ConfigurationError(msg)
    try:
        return int(value)
    except (TypeError, ValueError):
        msg = f'{name} must be an integer, got {value!r}'
        raise ConfigurationError(msg) from None


def _as_list(value: Any, name: str) -> list[str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return value
    msg = f'{name} must be a string or a list of strings, got {value!r}'
    raise ConfigurationError(msg)


def load_config(rootdir: Path) -> PartitionConfig:
    """Load configuration from pyproject.toml.

    Reads the [tool.pytest-partition] section from pyproject.toml in the
    given directory. Returns default configuration if the file or section
    does not exist.

    Args:
        rootdir: Directory containing pyproject.toml.

    Returns:
        PartitionConfig with values from pyproject.toml or defaults.

    Raises:
        ConfigurationError: If the file is not valid TOML or a value has the
            wrong type.
    """
    pyproject_path = rootdir / 'pyproject.toml'

    if not pyproject_path.exists():
        return PartitionConfig()

    try:
        with pyproject_path.open('rb') as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        msg = f'Invalid {pyproject_path}: {exc}'
        raise ConfigurationError(msg) from exc

    tool_config = data.get('tool', {}).get('pytest-partition', {})

    groups = tool_config.get('groups')
    return PartitionConfig(
        groups=_parse_int(groups, 'groups') if groups is not None else None,
        group_by=tool_config.get('group_by'),
        runtime_log=tool_config.get('runtime_log'),
        patterns=_as_list(tool_config.get('pattern'), 'pattern'),
        exclude=_as_list(tool_config.get('exclude'), 'exclude'),
    )


def merge_configs(
    file_config: PartitionConfig,
    cli_groups: int | None = None,
    cli_group_by: str | None = None,
    cli_runtime_log: str | None = None,
    cli_pattern: str | None = None,
) -> PartitionConfig:
    """Merge CLI arguments with file configuration.

    CLI arguments take precedence over pyproject.toml configuration.
    Empty strings are treated as not provided.

    Args:
        file_config: Configuration loaded from pyproject.toml.
        cli_groups: Group count from -n/--groups.
        cli_group_by: Grouping mode from --group-by.
        cli_runtime_log: Runtime log path from --runtime-log.
        cli_pattern: Comma-separated file name patterns from --pattern.

    Returns:
        PartitionConfig with CLI values overriding file config where provided.
    """
    patterns = file_config.patterns
    if cli_pattern and cli_pattern.strip():
        patterns = [p.strip() for p in cli_pattern.split(',') if p.strip()]

    return PartitionConfig(
        groups=cli_groups if cli_groups is not None else file_config.groups,
        group_by=cli_group_by.strip() if cli_group_by and cli_group_by.strip() else file_config.group_by,
        runtime_log=cli_runtime_log.strip() if cli_runtime_log and cli_runtime_log.strip() else file_config.runtime_log,
        patterns=patterns,
        exclude=file_config.exclude,
    )
