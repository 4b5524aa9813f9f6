"""Tests for the pytest-partition command line."""

from __future__ import annotations

from pathlib import Path

import pytest

from pytest_partition.cli import (
    build_parser,
    main,
    merge_partial_logs,
    parse_only_groups,
    partial_log_path,
    split_pytest_args,
)
from pytest_partition.errors import ConfigurationError
from pytest_partition.grouping.groups import Group
from pytest_partition.history.log import RuntimeLog


@pytest.fixture
def suite(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create four test files of different sizes and chdir into them."""
    tests = tmp_path / 'tests'
    tests.mkdir()
    for name, size in [('test_a.py', 400), ('test_b.py', 300), ('test_c.py', 200), ('test_d.py', 100)]:
        (tests / name).write_text('#' * size)
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv('PARALLEL_TEST_PROCESSORS', raising=False)
    return tmp_path


class TestArgumentParsing:
    """Tests for argument handling helpers."""

    def test_split_pytest_args(self) -> None:
        """Arguments after -- go to pytest."""
        assert split_pytest_args(['tests', '--', '-x', '--', 'y']) == (['tests'], ['-x', '--', 'y'])

    def test_split_without_separator(self) -> None:
        """Without --, nothing is passed to pytest."""
        assert split_pytest_args(['tests', '-n', '2']) == (['tests', '-n', '2'], [])

    def test_parser_defaults(self) -> None:
        """Paths default to the current directory."""
        args = build_parser().parse_args([])
        assert args.paths == ['.']
        assert args.groups is None
        assert args.group_by is None

    def test_parser_rejects_unknown_mode(self) -> None:
        """--group-by only accepts known modes."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(['--group-by', 'fastest'])

    def test_parse_only_groups(self) -> None:
        """1-based group numbers become sorted zero-based indices."""
        assert parse_only_groups('3, 1,3', 4) == [0, 2]
        assert parse_only_groups(None, 4) is None

    @pytest.mark.parametrize('value', ['0', '5', 'two', '²', '-1'])
    def test_parse_only_groups_rejects_out_of_range(self, value: str) -> None:
        """Group numbers must be within 1..group_count."""
        with pytest.raises(ConfigurationError):
            parse_only_groups(value, 4)


class TestPartialLogs:
    """Tests for per-group runtime logs."""

    def test_partial_log_path(self, tmp_path: Path) -> None:
        """Partial logs sit next to the runtime log."""
        assert partial_log_path(tmp_path / 'runtime.log', 0) == tmp_path / 'runtime.log.group1'

    def test_merge_partial_logs(self, tmp_path: Path) -> None:
        """Partial logs are folded into the main log and removed."""
        runtime_log = tmp_path / 'runtime.log'
        runtime_log.write_text('old.py:9\na.py:9\n')
        partial_log_path(runtime_log, 0).write_text('a.py:1\n')
        partial_log_path(runtime_log, 1).write_text('b.py:2\n')

        merge_partial_logs(runtime_log, [Group(index=0), Group(index=1), Group(index=2)])

        log = RuntimeLog.load(runtime_log)
        assert log is not None
        assert {f: log.lookup(f) for f in log} == {'a.py': 1.0, 'b.py': 2.0, 'old.py': 9.0}
        assert not partial_log_path(runtime_log, 0).exists()
        assert not partial_log_path(runtime_log, 1).exists()

    def test_merge_without_partials_leaves_log(self, tmp_path: Path) -> None:
        """Nothing recorded means the main log is untouched."""
        runtime_log = tmp_path / 'runtime.log'

        merge_partial_logs(runtime_log, [Group(index=0)])

        assert not runtime_log.exists()


class TestMain:
    """Tests for the main entry point without running pytest."""

    def test_dry_run_prints_plan(self, suite: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """--dry-run prints the balanced groups and exits 0."""
        exit_code = main(['tests', '-n', '2', '--dry-run'])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert '4 files in 2 groups, weighted by filesize' in out
        assert 'group 1: 2 files, load 500' in out
        assert 'group 2: 2 files, load 500' in out
        assert '  tests/test_a.py' in out

    def test_dry_run_uses_runtime_log(self, suite: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """A runtime log switches the weights to recorded durations."""
        log = suite / 'custom.log'
        log.write_text('tests/test_a.py:1\ntests/test_b.py:1\ntests/test_c.py:1\ntests/test_d.py:3\n')

        exit_code = main(['tests', '-n', '2', '--dry-run', '--runtime-log', str(log)])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert 'weighted by runtime' in out
        assert 'group 1: 1 files, load 3' in out
        assert 'group 2: 3 files, load 3' in out

    def test_found_mode_reports_discovery_order(self, suite: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Round-robin plans say they are unweighted."""
        main(['tests', '-n', '2', '--dry-run', '--group-by', 'found'])

        assert 'weighted by discovery order' in capsys.readouterr().out

    def test_group_count_from_environment(
        self, suite: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """PARALLEL_TEST_PROCESSORS sets the group count for the CLI."""
        monkeypatch.setenv('PARALLEL_TEST_PROCESSORS', '4')

        main(['tests', '--dry-run'])

        assert '4 files in 4 groups' in capsys.readouterr().out

    def test_group_count_from_pyproject(self, suite: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """[tool.pytest-partition] groups is honoured."""
        (suite / 'pyproject.toml').write_text('[tool.pytest-partition]\ngroups = 3\n')

        main(['tests', '--dry-run'])

        assert '4 files in 3 groups' in capsys.readouterr().out

    def test_missing_path_exits_with_usage_error(self, suite: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Unknown paths are reported on stderr with exit code 2."""
        assert main(['nope', '-n', '2']) == 2
        assert "Error: Cannot access test file 'nope'" in capsys.readouterr().err

    def test_invalid_group_count_exits_with_usage_error(self, suite: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """A non-positive group count is a configuration error."""
        assert main(['tests', '-n', '0']) == 2
        assert 'groups must be positive' in capsys.readouterr().err

    def test_runtime_mode_without_log_exits_with_usage_error(self, suite: Path) -> None:
        """Runtime mode needs a runtime log."""
        assert main(['tests', '-n', '2', '--group-by', 'runtime']) == 2
