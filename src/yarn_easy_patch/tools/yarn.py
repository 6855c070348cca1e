"""Integration with ``yarn patch`` and ``yarn patch-commit``.

Yarn exposes no machine-readable output for ``yarn patch``; the staging folder
and the follow-up command are only printed as prose, e.g.::

    ➤ YN0000: You can now edit the following folder: /tmp/xfs-1a2b3c4d/user
    ➤ YN0000: Once you are done run yarn patch-commit -s /tmp/xfs-1a2b3c4d/user and Yarn will store a patchfile based on your changes.

:func:`parse_patch_output` is the single place that knows these phrases.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List

import logging
import re

from .process import DEFAULT_TIMEOUT, CommandResult, CommandRunner, run_command

LOGGER = logging.getLogger(__name__)

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")
_FOLDER_RE = re.compile(r"You can now edit the following folder: (.+)")
_COMMIT_RE = re.compile(r"Once you are done run (yarn patch-commit -s .+) and Yarn will")


class PatchOutputError(RuntimeError):
    """Raised when ``yarn patch`` output lacks the expected phrases."""

    def __init__(self, message: str, *, output: str) -> None:
        super().__init__(message)
        self.output = output


@dataclass(slots=True, frozen=True)
class PatchSession:
    """Staging folder and finalize command announced by ``yarn patch``."""

    staging_dir: Path
    commit_command: str

    def commit_argv(self) -> List[str]:
        """Split the finalize command on whitespace into program and arguments."""
        return self.commit_command.split()


def parse_patch_output(output: str) -> PatchSession:
    """Extract the :class:`PatchSession` announced in ``yarn patch`` output.

    Colour escape sequences are ignored.  Raises :class:`PatchOutputError`
    when either phrase is missing, which means the command failed in an
    unexpected way or Yarn changed its wording.
    """

    text = _ANSI_ESCAPE.sub("", output)
    folder = _FOLDER_RE.search(text)
    commit = _COMMIT_RE.search(text)
    if folder is None or commit is None:
        raise PatchOutputError("Could not parse yarn patch output.", output=output)
    return PatchSession(
        staging_dir=Path(folder.group(1).strip()),
        commit_command=commit.group(1).strip(),
    )


def start_patch(
    package: str,
    *,
    cwd: Path | str,
    runner: CommandRunner = run_command,
    executable: str = "yarn",
    timeout: float = DEFAULT_TIMEOUT,
) -> PatchSession:
    """Run ``yarn patch <package>`` and return the session it opened."""

    result = runner(executable, ("patch", package), cwd=cwd, timeout=timeout, exit_on_error=True)
    session = parse_patch_output(result.stdout)
    LOGGER.debug("yarn patch staged %s in %s", package, session.staging_dir)
    return session


def commit_patch(
    session: PatchSession,
    *,
    cwd: Path | str,
    runner: CommandRunner = run_command,
    timeout: float = DEFAULT_TIMEOUT,
) -> CommandResult:
    """Run the finalize command exactly as ``yarn patch`` printed it."""

    program, *args = session.commit_argv()
    return runner(program, args, cwd=cwd, timeout=timeout, exit_on_error=True)


__all__ = [
    "PatchOutputError",
    "PatchSession",
    "commit_patch",
    "parse_patch_output",
    "start_patch",
]
