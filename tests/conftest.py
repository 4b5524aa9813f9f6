"""Shared fixtures for pytest-partition tests."""

from __future__ import annotations

import pytest

from pytest_partition.config import GROUP_COUNT_ENV
from pytest_partition.runner.pool import GROUP_COUNT_VAR, TEST_ENV_NUMBER


@pytest.fixture(autouse=True)
def isolated_partition_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Hide partition variables set when this suite itself runs in a group."""
    for name in (GROUP_COUNT_ENV, GROUP_COUNT_VAR, TEST_ENV_NUMBER):
        monkeypatch.delenv(name, raising=False)
