"""Helpers for npm package identifiers as Yarn names them on disk."""

from __future__ import annotations

from dataclasses import dataclass


def strip_version(identifier: str) -> str:
    """Remove a trailing ``@<version-or-tag>`` while keeping any ``@scope/``.

    >>> strip_version("left-pad@1.2.3")
    'left-pad'
    >>> strip_version("@scope/pkg@1.0.0")
    '@scope/pkg'
    """
    if identifier.startswith("@"):
        slash = identifier.find("/")
        if slash == -1:
            return identifier
        version_at = identifier.find("@", slash)
        return identifier if version_at == -1 else identifier[:version_at]
    version_at = identifier.find("@")
    return identifier if version_at == -1 else identifier[:version_at]


def patch_file_prefix(package_name: str) -> str:
    """Return the file-name prefix Yarn uses for patches of ``package_name``.

    Yarn keeps the leading ``@`` of scoped packages and flattens ``/`` to
    ``-``, so ``@scope/pkg`` becomes ``@scope-pkg``.
    """
    return package_name.replace("/", "-")


@dataclass(slots=True, frozen=True)
class PackageSpec:
    """A package identifier as typed by the user plus its bare name."""

    raw: str
    name: str

    @classmethod
    def parse(cls, raw: str) -> "PackageSpec":
        cleaned = raw.strip()
        if not cleaned:
            raise ValueError("Package identifier must not be empty.")
        return cls(raw=cleaned, name=strip_version(cleaned))

    @property
    def patch_prefix(self) -> str:
        return patch_file_prefix(self.name)

    @property
    def has_version(self) -> bool:
        return self.raw != self.name


__all__ = ["PackageSpec", "patch_file_prefix", "strip_version"]
