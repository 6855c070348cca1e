"""Best-effort application of an existing patch file to an installed package.

Two tools are tried in order.  ``patch`` handles standalone unified diffs
produced by Yarn and tolerates already-applied hunks via ``--forward``.
``git apply`` is the fallback for diffs ``patch`` rejects, typically because
of whitespace drift.  Each tool is checked with a dry run before anything on
disk changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Tuple

import logging

from .process import CommandResult, CommandRunner, run_command

LOGGER = logging.getLogger(__name__)

ApplyStrategy = Literal["patch", "git-apply"]

DEFAULT_CHECK_TIMEOUT = 5.0
DEFAULT_APPLY_TIMEOUT = 10.0

# -p1 strips the a/ and b/ prefixes of git-style diffs.
_PATCH_FLAGS: Tuple[str, ...] = ("--no-backup-if-mismatch", "--forward", "--batch", "-p1")
_GIT_APPLY_FLAGS: Tuple[str, ...] = ("--ignore-whitespace",)


@dataclass(slots=True)
class PatchApplication:
    """Outcome of :func:`try_apply_patch`."""

    patch: Path
    applied: bool
    can_apply: bool
    output: str
    strategy: ApplyStrategy | None = None

    @property
    def status(self) -> Literal["applied", "failed", "skipped"]:
        if self.applied:
            return "applied"
        return "failed" if self.can_apply else "skipped"


def _first_output(*results: CommandResult) -> str:
    for result in results:
        for stream in (result.stderr, result.stdout):
            if stream.strip():
                return stream
    return ""


def try_apply_patch(
    patch_path: Path | str,
    target_dir: Path | str,
    *,
    runner: CommandRunner = run_command,
    check_timeout: float = DEFAULT_CHECK_TIMEOUT,
    apply_timeout: float = DEFAULT_APPLY_TIMEOUT,
) -> PatchApplication:
    """Try to apply ``patch_path`` inside ``target_dir``.

    The first strategy whose dry run succeeds performs the real application;
    ``can_apply`` then reports ``True`` and ``applied`` mirrors the exit code
    of that second run.  When neither dry run succeeds nothing is modified and
    the diagnostic output of the failed checks is returned instead.

    Command failures never raise here; a patch that does not apply is an
    expected state, for example when it is already applied.
    """

    patch_file = Path(patch_path).resolve()
    workdir = Path(target_dir)

    patch_args = (*_PATCH_FLAGS, "-i", str(patch_file))
    dry_run = runner(
        "patch",
        ("--dry-run", *patch_args),
        cwd=workdir,
        timeout=check_timeout,
        exit_on_error=False,
    )
    if dry_run.ok:
        LOGGER.debug("patch --dry-run accepted %s", patch_file.name)
        applied = runner("patch", patch_args, cwd=workdir, timeout=apply_timeout, exit_on_error=False)
        return PatchApplication(
            patch=patch_file,
            applied=applied.ok,
            can_apply=True,
            output=applied.output,
            strategy="patch",
        )

    git_args = (*_GIT_APPLY_FLAGS, str(patch_file))
    git_check = runner(
        "git",
        ("apply", "--check", *git_args),
        cwd=workdir,
        timeout=check_timeout,
        exit_on_error=False,
    )
    if git_check.ok:
        LOGGER.debug("git apply --check accepted %s", patch_file.name)
        applied = runner("git", ("apply", *git_args), cwd=workdir, timeout=apply_timeout, exit_on_error=False)
        return PatchApplication(
            patch=patch_file,
            applied=applied.ok,
            can_apply=True,
            output=applied.output,
            strategy="git-apply",
        )

    return PatchApplication(
        patch=patch_file,
        applied=False,
        can_apply=False,
        output=_first_output(dry_run, git_check),
    )


__all__ = [
    "ApplyStrategy",
    "DEFAULT_APPLY_TIMEOUT",
    "DEFAULT_CHECK_TIMEOUT",
    "PatchApplication",
    "try_apply_patch",
]
