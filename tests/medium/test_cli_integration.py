"""End-to-end tests running groups through real pytest processes."""

from __future__ import annotations

from pathlib import Path

import pytest

from pytest_partition.cli import main
from pytest_partition.history.log import RuntimeLog


PASSING = 'def test_ok():\n    assert True\n'
FAILING = 'def test_broken():\n    assert False\n'
ENV_CHECK = """
import os

def test_env():
    assert os.environ['PARALLEL_TEST_GROUPS'] == '2'
    assert os.environ['TEST_ENV_NUMBER'] in ('', '2')
"""


@pytest.fixture
def suite(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a small passing suite and chdir into it."""
    tests = tmp_path / 'tests'
    tests.mkdir()
    (tests / 'test_a.py').write_text(PASSING)
    (tests / 'test_b.py').write_text(PASSING)
    (tests / 'test_env.py').write_text(ENV_CHECK)
    (tmp_path / 'pytest.ini').write_text('[pytest]\n')
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestRunGroups:
    """Tests for running partitioned groups."""

    def test_passing_suite_exits_zero(self, suite: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """All groups pass and the summary is printed."""
        exit_code = main(['tests', '-n', '2', '--', '-p', 'no:cacheprovider'])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert '2 groups, 3 files, 0 groups failed' in out

    def test_failing_group_sets_exit_code(self, suite: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """A failing test makes the run fail with pytest's exit code."""
        (suite / 'tests' / 'test_c.py').write_text(FAILING)

        exit_code = main(['tests', '-n', '2', '--', '-p', 'no:cacheprovider'])

        assert exit_code == 1
        assert '1 groups failed' in capsys.readouterr().out

    def test_only_group_runs_selected_groups(self, suite: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """--only-group limits the run to the chosen groups."""
        exit_code = main(['tests', '-n', '3', '--group-by', 'found', '--only-group', '2', '--', '-p', 'no:cacheprovider'])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert '1 groups, 1 files, 0 groups failed' in out

    def test_record_runtime_writes_log(self, suite: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """--record-runtime merges every group's durations into the log."""
        exit_code = main(['tests', '-n', '2', '--record-runtime', '--', '-p', 'no:cacheprovider'])
        capsys.readouterr()

        assert exit_code == 0
        log = RuntimeLog.load(suite / 'tmp' / 'parallel_runtime_pytest.log')
        assert log is not None
        assert sorted(log) == ['tests/test_a.py', 'tests/test_b.py', 'tests/test_env.py']
        assert not list((suite / 'tmp').glob('*.group*'))

    def test_recorded_runtime_drives_next_plan(self, suite: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """After recording, the next plan is weighted by runtime."""
        main(['tests', '-n', '2', '--record-runtime', '--', '-p', 'no:cacheprovider'])
        capsys.readouterr()

        main(['tests', '-n', '2', '--dry-run'])

        assert 'weighted by runtime' in capsys.readouterr().out


class TestRootdirAboveWorkingDirectory:
    """Tests for suites whose pytest ini file sits in a parent directory."""

    @pytest.fixture
    def package(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
        """Create tmp/pytest.ini and a package suite in tmp/pkg, then chdir into pkg."""
        (tmp_path / 'pytest.ini').write_text('[pytest]\n')
        tests = tmp_path / 'pkg' / 'tests'
        tests.mkdir(parents=True)
        (tests / 'test_a.py').write_text(PASSING)
        (tests / 'test_b.py').write_text(PASSING)
        monkeypatch.chdir(tmp_path / 'pkg')
        return tmp_path / 'pkg'

    def test_recorded_ids_match_discovered_files(self, package: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Runtimes are keyed by paths relative to the working directory."""
        exit_code = main(['tests', '-n', '2', '--record-runtime', '--', '-p', 'no:cacheprovider'])
        capsys.readouterr()

        assert exit_code == 0
        log = RuntimeLog.load(package / 'tmp' / 'parallel_runtime_pytest.log')
        assert log is not None
        assert sorted(log) == ['tests/test_a.py', 'tests/test_b.py']

    def test_next_plan_is_weighted_by_runtime(self, package: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """The recorded runtimes are used by the following plan."""
        main(['tests', '-n', '2', '--record-runtime', '--', '-p', 'no:cacheprovider'])
        capsys.readouterr()

        assert main(['tests', '-n', '2', '--dry-run', '--group-by', 'runtime']) == 0
        assert 'weighted by runtime' in capsys.readouterr().out
