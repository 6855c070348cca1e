"""Reconciliation flow that turns in-place ``node_modules`` edits into a Yarn patch.

A run walks the stages of :class:`ReconcileStage` exactly once:

1. verify the package is installed,
2. collect the package's existing patch files,
3. try to re-apply them to the installed copy (failures are tolerated),
4. open a ``yarn patch`` session,
5. mirror the installed files into the staging folder,
6. run ``yarn patch-commit``,
7. delete the superseded patch files once a new one exists.

The reconciler never touches ``sys.exit`` or the current working directory;
fatal problems surface as exceptions and everything else is collected in the
returned :class:`ReconcileResult`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List

import logging

from .config import EasyPatchSettings
from .packages import PackageSpec
from .tools.applier import PatchApplication, try_apply_patch
from .tools.locator import find_existing_patches
from .tools.process import CommandRunner, run_command
from .tools.sync import sync_edits
from .tools.yarn import PatchSession, commit_patch, start_patch

LOGGER = logging.getLogger(__name__)


class ReconcileStage(str, Enum):
    """Stages of a reconciliation run, in execution order."""

    START = "start"
    LOCATE_EXISTING = "locate_existing"
    APPLY_EXISTING = "apply_existing"
    RUN_PATCH_WORKFLOW = "run_patch_workflow"
    SYNC_EDITS = "sync_edits"
    FINALIZE_PATCH = "finalize_patch"
    CLEANUP = "cleanup"
    DONE = "done"


class PackageNotFoundError(RuntimeError):
    """Raised when the package is not installed under ``node_modules``."""

    def __init__(self, package: str, path: Path) -> None:
        super().__init__(f"Package {package} not found in node_modules at {path}")
        self.package = package
        self.path = path


@dataclass(slots=True)
class ReconcileResult:
    """Everything a reconciliation run did, for rendering and inspection."""

    package: PackageSpec
    target_dir: Path
    patches_dir: Path
    stage: ReconcileStage = ReconcileStage.START
    existing: List[Path] = field(default_factory=list)
    applications: List[PatchApplication] = field(default_factory=list)
    session: PatchSession | None = None
    new_patches: List[Path] = field(default_factory=list)
    removed: List[Path] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.stage is ReconcileStage.DONE


class PatchReconciler:
    """Drive one ``yarn patch`` round trip for a single package."""

    def __init__(
        self,
        package: PackageSpec,
        *,
        project_root: Path,
        settings: EasyPatchSettings | None = None,
        runner: CommandRunner = run_command,
    ) -> None:
        self.package = package
        self.project_root = Path(project_root)
        self.settings = settings or EasyPatchSettings()
        self.runner = runner
        self.target_dir = self.settings.resolve_node_modules(self.project_root) / package.name
        self.patches_dir = self.settings.resolve_patches_dir(self.project_root)

    def run(self) -> ReconcileResult:
        result = ReconcileResult(
            package=self.package,
            target_dir=self.target_dir,
            patches_dir=self.patches_dir,
        )

        self._check_target()

        result.stage = ReconcileStage.LOCATE_EXISTING
        LOGGER.info("Checking for existing patches in %s...", self.patches_dir)
        result.existing = find_existing_patches(self.package.name, self.patches_dir)

        result.stage = ReconcileStage.APPLY_EXISTING
        result.applications = self._apply_existing(result.existing)

        result.stage = ReconcileStage.RUN_PATCH_WORKFLOW
        LOGGER.info("Running %s patch %s...", self.settings.yarn_executable, self.package.raw)
        session = start_patch(
            self.package.raw,
            cwd=self.project_root,
            runner=self.runner,
            executable=self.settings.yarn_executable,
            timeout=self.settings.timeouts.command,
        )
        result.session = session
        LOGGER.info("Temporary folder created: %s", session.staging_dir)

        result.stage = ReconcileStage.SYNC_EDITS
        LOGGER.info("Copying changes from %s to %s", self.target_dir, session.staging_dir)
        sync_edits(
            self.target_dir,
            session.staging_dir,
            runner=self.runner,
            excludes=self.settings.sync_excludes,
            executable=self.settings.rsync_executable,
            timeout=self.settings.timeouts.command,
        )

        result.stage = ReconcileStage.FINALIZE_PATCH
        LOGGER.info("Running %s", session.commit_command)
        commit_patch(
            session,
            cwd=self.project_root,
            runner=self.runner,
            timeout=self.settings.timeouts.command,
        )

        result.stage = ReconcileStage.CLEANUP
        self._cleanup(result)

        result.stage = ReconcileStage.DONE
        return result

    # ------------------------------------------------------------------ stages
    def _check_target(self) -> None:
        if not self.target_dir.is_dir():
            raise PackageNotFoundError(self.package.name, self.target_dir)

    def _apply_existing(self, patches: List[Path]) -> List[PatchApplication]:
        if not patches:
            LOGGER.info("No existing patches found.")
            return []

        LOGGER.info("Found %d existing patch(es): %s", len(patches), ", ".join(path.name for path in patches))
        applications: List[PatchApplication] = []
        # Sequential on purpose: every patch mutates the same directory.
        for patch_path in patches:
            LOGGER.info("Attempting to apply: %s", patch_path.name)
            application = try_apply_patch(
                patch_path,
                self.target_dir,
                runner=self.runner,
                check_timeout=self.settings.timeouts.check,
                apply_timeout=self.settings.timeouts.apply,
            )
            if application.applied:
                LOGGER.info("Patch %s applied with %s.", patch_path.name, application.strategy)
            elif application.can_apply:
                LOGGER.warning("Patch %s had issues while applying:\n%s", patch_path.name, application.output.strip())
            else:
                LOGGER.warning(
                    "Patch %s cannot be applied cleanly (may already be applied or conflicts exist); continuing.",
                    patch_path.name,
                )
                if application.output.strip():
                    LOGGER.debug("%s", application.output.strip())
            applications.append(application)
        return applications

    def _cleanup(self, result: ReconcileResult) -> None:
        current = find_existing_patches(self.package.name, self.patches_dir)
        previous_names = {path.name for path in result.existing}
        result.new_patches = [path for path in current if path.name not in previous_names]

        if not result.new_patches:
            if result.existing:
                message = "No new patch file appeared; keeping existing patches."
                LOGGER.warning(message)
                result.warnings.append(message)
            return

        LOGGER.info("New patch created: %s", ", ".join(path.name for path in result.new_patches))
        for old_patch in result.existing:
            try:
                old_patch.unlink()
            except OSError as error:
                message = f"Could not remove old patch {old_patch.name}: {error}"
                LOGGER.warning(message)
                result.warnings.append(message)
                continue
            LOGGER.info("Removed old patch: %s", old_patch.name)
            result.removed.append(old_patch)


def reconcile_package(
    package: str | PackageSpec,
    *,
    project_root: Path,
    settings: EasyPatchSettings | None = None,
    runner: CommandRunner = run_command,
) -> ReconcileResult:
    """Convenience wrapper around :class:`PatchReconciler`."""

    spec = package if isinstance(package, PackageSpec) else PackageSpec.parse(package)
    return PatchReconciler(spec, project_root=project_root, settings=settings, runner=runner).run()


__all__ = [
    "PackageNotFoundError",
    "PatchReconciler",
    "ReconcileResult",
    "ReconcileStage",
    "reconcile_package",
]
