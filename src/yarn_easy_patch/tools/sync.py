"""Mirror edited package files into the Yarn staging folder with ``rsync``."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from .process import DEFAULT_TIMEOUT, CommandResult, CommandRunner, run_command

DEFAULT_EXCLUDES: tuple[str, ...] = ("node_modules", "*.orig", "*.rej")


def rsync_arguments(source: Path, destination: Path, excludes: Sequence[str] = DEFAULT_EXCLUDES) -> list[str]:
    """Build ``rsync`` arguments that make ``destination`` match ``source``."""
    args = ["-a", "--delete"]
    for pattern in excludes:
        args.extend(["--exclude", pattern])
    # Trailing slashes copy directory contents rather than the directory itself.
    args.append(f"{str(source).rstrip('/')}/")
    args.append(f"{str(destination).rstrip('/')}/")
    return args


def sync_edits(
    source: Path | str,
    destination: Path | str,
    *,
    runner: CommandRunner = run_command,
    excludes: Sequence[str] = DEFAULT_EXCLUDES,
    executable: str = "rsync",
    timeout: float = DEFAULT_TIMEOUT,
) -> CommandResult:
    """Copy ``source`` over ``destination``, deleting files removed from ``source``.

    Nested ``node_modules`` trees and ``*.orig``/``*.rej`` leftovers from
    patch application are excluded so they never end up in the patch.
    """

    args = rsync_arguments(Path(source), Path(destination), excludes)
    return runner(executable, args, timeout=timeout, exit_on_error=True)


__all__ = ["DEFAULT_EXCLUDES", "rsync_arguments", "sync_edits"]
