"""Package discovery: the immediate subdirectories of the packages directory."""

from __future__ import annotations

from pathlib import Path

from pkgrel.core.result import Err, Ok, Result
from pkgrel.platform.files import FileOps, LocalFileOps
from pkgrel.release.errors import ReleaseError


def discover_packages(
    packages_dir: Path,
    *,
    files: FileOps | None = None,
) -> Result[list[str], ReleaseError]:
    """Return package names in filesystem listing order.

    Plain files (README.md, tsconfig.json, ...) are skipped. An empty list is
    a valid result.
    """
    fs = files or LocalFileOps()
    if not fs.exists(packages_dir):
        return Err(
            ReleaseError(
                kind="packages_missing",
                message=f"packages directory not found: {packages_dir}",
                hint="Set [paths].packages in pkgrel.toml if packages live elsewhere.",
            )
        )
    try:
        return Ok(fs.list_dirs(packages_dir))
    except OSError as e:
        return Err(
            ReleaseError(
                kind="packages_missing",
                message=f"failed to list packages: {packages_dir}",
                hint=str(e),
            )
        )
