"""Reporting module for pytest-partition."""

from pytest_partition.reporting.console import ConsoleReporter


__all__ = ['ConsoleReporter']
