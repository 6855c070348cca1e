"""Command line entry point for yarn-easy-patch."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer

from . import __version__
from .config import DEFAULT_CONFIG_NAME, ConfigError, load_settings
from .packages import PackageSpec
from .reconcile import PackageNotFoundError, ReconcileResult, reconcile_package
from .tools.process import CommandError, run_command
from .tools.yarn import PatchOutputError

APP_HELP = """Create a Yarn patch from files edited directly in node_modules.

\b
Steps:
  1. Check for existing patches and try to apply them to node_modules
  2. Run 'yarn patch' to create a temporary folder
  3. Copy your modified files from node_modules to that folder
  4. Run 'yarn patch-commit' to create the patch
  5. Remove the patches the new one supersedes
"""

APP_EPILOG = """\b
Examples:
  yarn dlx yarn-easy-patch react-native
  yarn dlx yarn-easy-patch @babel/core
  yarn-easy-patch react-native --patches-dir ./patches
"""

# Unknown flags and extra positionals are ignored rather than rejected.
CONTEXT_SETTINGS = {
    "help_option_names": ["-h", "--help"],
    "ignore_unknown_options": True,
    "allow_extra_args": True,
}

app = typer.Typer(
    add_completion=False,
    rich_markup_mode=None,
    context_settings=CONTEXT_SETTINGS,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


def _configure_logging(*, debug: bool, quiet: bool) -> None:
    level = logging.DEBUG if debug else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(level=level, format="%(message)s")
    logging.getLogger("yarn_easy_patch").setLevel(level)


def _select_package(package: Optional[str], extra_args: List[str]) -> Optional[str]:
    """Return the first argument that is not a flag.

    Unknown options end up as positionals, so ``--force demo-pkg`` binds
    ``--force`` to the package argument and leaves ``demo-pkg`` in the extras.
    """
    candidates = [package, *extra_args] if package is not None else list(extra_args)
    for candidate in candidates:
        if candidate and not candidate.startswith("-"):
            return candidate
    return None


def _indent(text: str, prefix: str = "      ") -> str:
    return "\n".join(f"{prefix}{line}" for line in text.strip().splitlines())


def _render_result(result: ReconcileResult) -> None:
    """Print a human readable summary of a finished run."""
    if result.applications:
        typer.echo("Existing patches:")
        for application in result.applications:
            label = {
                "applied": "applied",
                "failed": "had issues while applying",
                "skipped": "not applied (already applied or conflicting)",
            }[application.status]
            typer.echo(f"  - {application.patch.name}: {label}")
            if application.status == "failed" and application.output.strip():
                typer.echo(_indent(application.output))
    for new_patch in result.new_patches:
        typer.echo(f"New patch: {new_patch.name}")
    for removed in result.removed:
        typer.echo(f"Removed old patch: {removed.name}")
    for warning in result.warnings:
        typer.echo(f"Warning: {warning}", err=True)
    typer.echo(f"Patch created successfully for {result.package.raw}!")
    typer.echo(f"The patch file should now be in {result.patches_dir}")


@app.command(help=APP_HELP, epilog=APP_EPILOG, context_settings=CONTEXT_SETTINGS)
def main(
    ctx: typer.Context,
    package: Optional[str] = typer.Argument(
        None,
        metavar="PACKAGE",
        help="Package to patch, optionally with a version (e.g. react-native@0.72.0).",
        show_default=False,
    ),
    patches_dir: Optional[Path] = typer.Option(
        None,
        "--patches-dir",
        help="Directory to look for existing patches (default: .yarn/patches).",
        show_default=False,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help=f"Settings file (default: {DEFAULT_CONFIG_NAME} when present).",
        show_default=False,
    ),
    debug: bool = typer.Option(False, "--debug", help="Log every external command."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log warnings and errors."),
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=_version_callback,
        is_eager=True,
        help="Show version number.",
    ),
) -> None:
    package = _select_package(package, ctx.args)
    if not package:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    _configure_logging(debug=debug, quiet=quiet)
    project_root = Path.cwd()
    typer.echo(f"Creating patch for: {package}")

    try:
        settings = load_settings(
            project_root,
            config_path=config,
            overrides={"patches_dir": patches_dir},
        )
        result = reconcile_package(
            PackageSpec.parse(package),
            project_root=project_root,
            settings=settings,
            runner=run_command,
        )
    except PackageNotFoundError as error:
        typer.echo(f"Error: {error}", err=True)
        raise typer.Exit(code=1) from error
    except PatchOutputError as error:
        typer.echo(f"Error: {error} Output was:\n{error.output}", err=True)
        raise typer.Exit(code=1) from error
    except CommandError as error:
        typer.echo(f"Error: {error.diagnostic()}", err=True)
        raise typer.Exit(code=1) from error
    except (ConfigError, ValueError) as error:
        typer.echo(f"Error: {error}", err=True)
        raise typer.Exit(code=1) from error

    _render_result(result)


if __name__ == "__main__":
    app()
