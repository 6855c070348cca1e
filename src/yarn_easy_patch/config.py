"""Project-level settings for yarn-easy-patch.

Settings come from an optional YAML file in the project root (or the path
given with ``--config``).  Every key is optional; a missing file yields the
defaults below.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, PositiveFloat

from .tools.sync import DEFAULT_EXCLUDES

DEFAULT_CONFIG_NAME = ".yarn-easy-patch.yaml"
DEFAULT_PATCHES_DIR = Path(".yarn") / "patches"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be read or validated."""


class SettingsModel(BaseModel):
    """Base model rejecting unknown keys."""

    model_config = ConfigDict(extra="forbid")


class TimeoutSettings(SettingsModel):
    """Timeouts in seconds for the different kinds of external commands."""

    command: PositiveFloat = 30.0
    check: PositiveFloat = 5.0
    apply: PositiveFloat = 10.0


class EasyPatchSettings(SettingsModel):
    """Validated configuration for a reconciliation run."""

    patches_dir: Path = DEFAULT_PATCHES_DIR
    node_modules_dir: Path = Path("node_modules")
    yarn_executable: str = "yarn"
    rsync_executable: str = "rsync"
    sync_excludes: List[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDES))
    timeouts: TimeoutSettings = Field(default_factory=TimeoutSettings)

    def resolve_patches_dir(self, project_root: Path) -> Path:
        return self.patches_dir if self.patches_dir.is_absolute() else project_root / self.patches_dir

    def resolve_node_modules(self, project_root: Path) -> Path:
        return self.node_modules_dir if self.node_modules_dir.is_absolute() else project_root / self.node_modules_dir


def _read_mapping(config_path: Path) -> Dict[str, Any]:
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except OSError as error:
        raise ConfigError(f"Unable to read config {config_path}: {error}") from error
    except yaml.YAMLError as error:
        raise ConfigError(f"Failed to parse config {config_path}: {error}") from error
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a mapping at the top level: {config_path}")
    return data


def load_settings(
    project_root: Path,
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> EasyPatchSettings:
    """Load settings for ``project_root``.

    An explicit ``config_path`` must exist.  Without one the default file
    name is looked up in ``project_root`` and silently skipped when absent.
    ``overrides`` (typically CLI options) win over file values; ``None``
    values are ignored.
    """

    data: Dict[str, Any] = {}
    if config_path is not None:
        if not config_path.is_file():
            raise ConfigError(f"Config file not found: {config_path}")
        data = _read_mapping(config_path)
    else:
        candidate = project_root / DEFAULT_CONFIG_NAME
        if candidate.is_file():
            data = _read_mapping(candidate)

    for key, value in (overrides or {}).items():
        if value is not None:
            data[key] = value

    try:
        return EasyPatchSettings.model_validate(data)
    except ValidationError as error:
        source = config_path or project_root / DEFAULT_CONFIG_NAME
        raise ConfigError(f"Invalid configuration in {source}:\n{error}") from error


__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_NAME",
    "DEFAULT_PATCHES_DIR",
    "EasyPatchSettings",
    "TimeoutSettings",
    "load_settings",
]
