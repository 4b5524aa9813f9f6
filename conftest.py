"""Root pytest configuration for pytest-partition.

Applies size markers to every collected item, doctests in src/ included.
Fixtures shared by the test suite live in tests/conftest.py.
"""

from __future__ import annotations

from pathlib import Path

import pytest


SIZE_MARKERS = ('small', 'medium', 'large')


def _size_for(item: pytest.Item) -> str | None:
    parts = Path(str(item.fspath)).parts
    for size in SIZE_MARKERS:
        if size in parts:
            return size
    # doctests
    if 'src' in parts:
        return 'small'
    return None


@pytest.hookimpl(tryfirst=True)
def pytest_collection_modifyitems(
    config: pytest.Config,  # noqa: ARG001
    items: list[pytest.Item],
) -> None:
    """Mark each item small, medium or large from the directory it lives in.

    Items with an explicit size marker are left alone.
    """
    for item in items:
        if any(marker.name in SIZE_MARKERS for marker in item.iter_markers()):
            continue
        size = _size_for(item)
        if size is not None:
            item.add_marker(getattr(pytest.mark, size))
