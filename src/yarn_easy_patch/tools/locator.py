"""Discovery of existing Yarn patch files for a package."""

from __future__ import annotations

from pathlib import Path
from typing import List, Pattern

import logging
import re

from ..packages import patch_file_prefix

LOGGER = logging.getLogger(__name__)

PATCH_SUFFIX = ".patch"


def patch_name_pattern(package_name: str) -> Pattern[str]:
    """Return the pattern matching patch file names of ``package_name``.

    Yarn names patches ``<prefix>-<protocol>-<version>-<hash>.patch``, e.g.
    ``left-pad-npm-1.3.0-0a1b2c.patch`` or ``@scope-pkg-npm-2.0.0-ffff.patch``.
    The protocol is a lowercase word and the version starts with a digit, so
    ``foo-bar-npm-1.patch`` does not match ``foo``: ``bar`` is followed by
    ``-npm`` rather than a version.
    """
    prefix = re.escape(patch_file_prefix(package_name))
    return re.compile(rf"^{prefix}-[a-z]+-\d.*{re.escape(PATCH_SUFFIX)}$")


def find_existing_patches(package_name: str, patches_dir: Path | str) -> List[Path]:
    """Return patch files in ``patches_dir`` that belong to ``package_name``.

    ``package_name`` must already be version-stripped.  A missing or
    unreadable directory yields an empty list.  Results are sorted by file
    name.
    """

    directory = Path(patches_dir)
    pattern = patch_name_pattern(package_name)
    try:
        entries = sorted(directory.iterdir(), key=lambda entry: entry.name)
    except OSError as error:
        LOGGER.debug("No readable patches directory at %s: %s", directory, error)
        return []

    return [entry for entry in entries if pattern.match(entry.name) and entry.is_file()]


__all__ = ["PATCH_SUFFIX", "find_existing_patches", "patch_name_pattern"]
