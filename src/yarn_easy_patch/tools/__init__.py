"""Wrappers around the external programs the reconciler drives."""

from .applier import PatchApplication, try_apply_patch
from .locator import find_existing_patches
from .process import CommandError, CommandResult, CommandRunner, CommandTimeoutError, run_command
from .sync import sync_edits
from .yarn import PatchOutputError, PatchSession, commit_patch, parse_patch_output, start_patch

__all__ = [
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "CommandTimeoutError",
    "PatchApplication",
    "PatchOutputError",
    "PatchSession",
    "commit_patch",
    "find_existing_patches",
    "parse_patch_output",
    "run_command",
    "start_patch",
    "sync_edits",
    "try_apply_patch",
]
