"""Turn edits made directly in node_modules into Yarn patch files."""

from .packages import PackageSpec, strip_version
from .reconcile import PackageNotFoundError, PatchReconciler, ReconcileResult, reconcile_package

__version__ = "1.1.0"

__all__ = [
    "PackageNotFoundError",
    "PackageSpec",
    "PatchReconciler",
    "ReconcileResult",
    "__version__",
    "reconcile_package",
    "strip_version",
]
