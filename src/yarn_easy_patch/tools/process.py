"""Subprocess helpers shared by every external tool integration.

All external programs (``yarn``, ``patch``, ``git``, ``rsync``) are reached
through :func:`run_command`.  Callers either let failures raise
:class:`CommandError` or opt into inspecting the :class:`CommandResult` when an
operation is speculative, such as a dry run.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

import logging
import subprocess

LOGGER = logging.getLogger(__name__)

TIMEOUT_EXIT_CODE = 124
SPAWN_FAILURE_EXIT_CODE = 127
DEFAULT_TIMEOUT = 30.0


@dataclass(slots=True)
class CommandResult:
    """Captured outcome of a single external command."""

    command: str
    args: tuple[str, ...]
    stdout: str
    stderr: str
    exit_code: int
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.timed_out

    @property
    def output(self) -> str:
        """Return stdout when present, otherwise stderr."""
        return self.stdout or self.stderr

    def command_line(self) -> str:
        return " ".join((self.command, *self.args))


class CommandError(RuntimeError):
    """Raised when a command run with ``exit_on_error`` does not succeed."""

    def __init__(self, message: str, *, result: CommandResult) -> None:
        super().__init__(message)
        self.result = result

    def diagnostic(self) -> str:
        """Render the message together with the captured output streams."""
        parts = [str(self)]
        if self.result.stdout.strip():
            parts.append(self.result.stdout.rstrip())
        if self.result.stderr.strip():
            parts.append(self.result.stderr.rstrip())
        return "\n".join(parts)


class CommandTimeoutError(CommandError):
    """Raised when a command exceeds its timeout and ``exit_on_error`` is set."""


class CommandRunner(Protocol):
    """Callable signature accepted wherever an external program is invoked."""

    def __call__(
        self,
        command: str,
        args: Sequence[str] = (),
        *,
        cwd: Path | str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        exit_on_error: bool = True,
    ) -> CommandResult: ...


def _decode(payload: bytes | str | None) -> str:
    if not payload:
        return ""
    if isinstance(payload, str):
        return payload
    return payload.decode("utf-8", errors="replace")


def run_command(
    command: str,
    args: Sequence[str] = (),
    *,
    cwd: Path | str | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    exit_on_error: bool = True,
) -> CommandResult:
    """Run ``command`` with ``args`` and capture its output.

    A command that outlives ``timeout`` seconds is killed and reported with
    ``timed_out=True`` and exit code ``124``.  When the program cannot be
    started at all the exit code is ``127`` and the OS error becomes stderr.

    With ``exit_on_error`` enabled any of those outcomes, or a non-zero exit,
    raises :class:`CommandError` (:class:`CommandTimeoutError` for timeouts).
    Otherwise the result is returned unchanged for the caller to inspect.
    """

    arguments = tuple(str(arg) for arg in args)
    LOGGER.debug("Running %s %s (cwd=%s, timeout=%ss)", command, " ".join(arguments), cwd or ".", timeout)

    try:
        process = subprocess.run(  # noqa: S603 - arguments are passed as a list, never through a shell
            [command, *arguments],
            cwd=cwd,
            capture_output=True,
            text=False,
            check=False,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as error:
        result = CommandResult(
            command=command,
            args=arguments,
            stdout=_decode(error.stdout),
            stderr=_decode(error.stderr),
            exit_code=TIMEOUT_EXIT_CODE,
            timed_out=True,
        )
        LOGGER.debug("%s timed out after %ss", command, timeout)
        if exit_on_error:
            raise CommandTimeoutError(
                f"Command timed out after {timeout:g}s: {result.command_line()}",
                result=result,
            ) from error
        return result
    except OSError as error:
        result = CommandResult(
            command=command,
            args=arguments,
            stdout="",
            stderr=str(error),
            exit_code=SPAWN_FAILURE_EXIT_CODE,
        )
        if exit_on_error:
            raise CommandError(f"Command failed: {command}: {error}", result=result) from error
        return result

    result = CommandResult(
        command=command,
        args=arguments,
        stdout=_decode(process.stdout),
        stderr=_decode(process.stderr),
        exit_code=process.returncode,
    )
    if exit_on_error and result.exit_code != 0:
        raise CommandError(
            f"Command failed with exit code {result.exit_code}: {result.command_line()}",
            result=result,
        )
    return result


__all__ = [
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "CommandTimeoutError",
    "DEFAULT_TIMEOUT",
    "SPAWN_FAILURE_EXIT_CODE",
    "TIMEOUT_EXIT_CODE",
    "run_command",
]
