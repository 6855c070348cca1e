from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Tuple

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from yarn_easy_patch.tools.process import CommandError, CommandResult  # noqa: E402

Handler = Callable[[str, Tuple[str, ...], Path | None], CommandResult]


@dataclass(slots=True)
class RecordedCall:
    command: str
    args: Tuple[str, ...]
    cwd: Path | None
    timeout: float
    exit_on_error: bool

    @property
    def argv(self) -> Tuple[str, ...]:
        return (self.command, *self.args)


@dataclass(slots=True)
class FakeRunner:
    """Stand-in for ``run_command`` that replays scripted results.

    Handlers are keyed by ``(command, first argument)`` and may be a
    :class:`CommandResult` or a callable returning one.  Unscripted commands
    succeed with empty output.
    """

    handlers: Dict[Tuple[str, str], CommandResult | Handler] = field(default_factory=dict)
    calls: List[RecordedCall] = field(default_factory=list)

    def on(self, command: str, first_arg: str, handler: CommandResult | Handler) -> None:
        self.handlers[(command, first_arg)] = handler

    def __call__(
        self,
        command: str,
        args: Sequence[str] = (),
        *,
        cwd: Path | str | None = None,
        timeout: float = 30.0,
        exit_on_error: bool = True,
    ) -> CommandResult:
        arguments = tuple(str(arg) for arg in args)
        workdir = Path(cwd) if cwd is not None else None
        self.calls.append(RecordedCall(command, arguments, workdir, timeout, exit_on_error))
        handler = self.handlers.get((command, arguments[0] if arguments else ""))
        if handler is None:
            result = ok_result(command, arguments)
        elif isinstance(handler, CommandResult):
            result = handler
        else:
            result = handler(command, arguments, workdir)
        if exit_on_error and not result.ok:
            raise CommandError(f"Command failed with exit code {result.exit_code}: {command}", result=result)
        return result

    def commands(self) -> List[Tuple[str, ...]]:
        return [call.argv for call in self.calls]


def ok_result(command: str, args: Sequence[str] = (), stdout: str = "") -> CommandResult:
    return CommandResult(command=command, args=tuple(args), stdout=stdout, stderr="", exit_code=0)


def failed_result(command: str, args: Sequence[str] = (), stderr: str = "failed", exit_code: int = 1) -> CommandResult:
    return CommandResult(command=command, args=tuple(args), stdout="", stderr=stderr, exit_code=exit_code)


@pytest.fixture()
def fake_runner() -> FakeRunner:
    return FakeRunner()


@dataclass(slots=True)
class YarnProject:
    """Fixture payload describing a project with one installed package."""

    root: Path
    package_dir: Path
    patches_dir: Path
    staging_dir: Path


def yarn_patch_output(staging_dir: Path) -> str:
    return (
        "➤ YN0000: Package demo-pkg@npm:1.0.0 got extracted with success!\n"
        f"➤ YN0000: You can now edit the following folder: {staging_dir}\n"
        f"➤ YN0000: Once you are done run yarn patch-commit -s {staging_dir} and Yarn will store a "
        "patchfile based on your changes.\n"
        "➤ YN0000: Done in 0s 42ms\n"
    )


@pytest.fixture()
def yarn_project(tmp_path: Path) -> YarnProject:
    """Create a project with ``node_modules/demo-pkg`` and an empty patches dir."""

    root = tmp_path / "project"
    package_dir = root / "node_modules" / "demo-pkg"
    package_dir.mkdir(parents=True)
    (package_dir / "index.js").write_text("module.exports = 1;\n", encoding="utf-8")
    patches_dir = root / ".yarn" / "patches"
    patches_dir.mkdir(parents=True)
    staging_dir = tmp_path / "xfs-1a2b3c" / "user"
    staging_dir.mkdir(parents=True)
    return YarnProject(root=root, package_dir=package_dir, patches_dir=patches_dir, staging_dir=staging_dir)


def script_yarn(runner: FakeRunner, project: YarnProject, new_patch: str | None) -> None:
    """Script ``yarn patch`` and make ``yarn patch-commit`` drop ``new_patch``."""

    runner.on("yarn", "patch", ok_result("yarn", ("patch",), stdout=yarn_patch_output(project.staging_dir)))

    def commit(command: str, args: Tuple[str, ...], cwd: Path | None) -> CommandResult:
        if new_patch is not None:
            (project.patches_dir / new_patch).write_text("diff --git a/index.js b/index.js\n", encoding="utf-8")
        return ok_result(command, args)

    runner.on("yarn", "patch-commit", commit)
