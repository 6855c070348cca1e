from __future__ import annotations

import sys
from pathlib import Path

import pytest

from yarn_easy_patch.tools.process import (
    SPAWN_FAILURE_EXIT_CODE,
    TIMEOUT_EXIT_CODE,
    CommandError,
    CommandTimeoutError,
    run_command,
)


def test_run_command_captures_both_streams() -> None:
    result = run_command(
        sys.executable,
        ["-c", "import sys; print('out'); print('err', file=sys.stderr)"],
    )

    assert result.ok
    assert result.exit_code == 0
    assert result.stdout.strip() == "out"
    assert result.stderr.strip() == "err"
    assert result.output.strip() == "out"


def test_run_command_uses_working_directory(tmp_path: Path) -> None:
    result = run_command(sys.executable, ["-c", "import os; print(os.getcwd())"], cwd=tmp_path)

    assert Path(result.stdout.strip()).resolve() == tmp_path.resolve()


def test_non_zero_exit_raises_with_captured_output() -> None:
    with pytest.raises(CommandError) as excinfo:
        run_command(sys.executable, ["-c", "import sys; print('partial'); sys.exit(3)"])

    error = excinfo.value
    assert error.result.exit_code == 3
    assert "partial" in error.diagnostic()
    assert "exit code 3" in str(error)


def test_non_zero_exit_is_returned_when_not_exiting_on_error() -> None:
    result = run_command(
        sys.executable,
        ["-c", "import sys; sys.stderr.write('nope'); sys.exit(2)"],
        exit_on_error=False,
    )

    assert not result.ok
    assert result.exit_code == 2
    assert result.output == "nope"


def test_timeout_is_reported_distinctly() -> None:
    result = run_command(
        sys.executable,
        ["-c", "import time; time.sleep(10)"],
        timeout=0.5,
        exit_on_error=False,
    )

    assert result.timed_out
    assert result.exit_code == TIMEOUT_EXIT_CODE
    assert not result.ok


def test_timeout_raises_when_exiting_on_error() -> None:
    with pytest.raises(CommandTimeoutError) as excinfo:
        run_command(sys.executable, ["-c", "import time; time.sleep(10)"], timeout=0.5)

    assert excinfo.value.result.timed_out
    assert "timed out" in str(excinfo.value)


def test_missing_program_is_a_spawn_failure(tmp_path: Path) -> None:
    missing = str(tmp_path / "definitely-not-installed")

    result = run_command(missing, exit_on_error=False)
    assert result.exit_code == SPAWN_FAILURE_EXIT_CODE
    assert result.stderr

    with pytest.raises(CommandError):
        run_command(missing)
