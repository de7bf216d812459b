"""Repository root detection and derived paths.

The workspace is the monorepo being released. Its root holds ``.git`` and the
shared manifest. Detection order:

1. An explicit root (``--root``)
2. The ``PKGREL_ROOT`` environment variable
3. Upward search from the current directory
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from .config import CONFIG_FILE_NAME, Config, PathsConfig
from .result import Err, Ok, Result

__all__ = [
    "ROOT_ENV_VAR",
    "Workspace",
    "WorkspaceError",
    "detect_workspace",
    "find_workspace_upward",
    "is_workspace_root",
]

ROOT_ENV_VAR = "PKGREL_ROOT"
GIT_DIR_NAME = ".git"


@dataclass(frozen=True)
class WorkspaceError:
    """Error when the repository root cannot be detected."""

    message: str
    searched_from: Path | None = None


@dataclass(frozen=True, slots=True)
class Workspace:
    """A monorepo checkout pkgrel operates on."""

    root: Path
    paths: PathsConfig = field(default_factory=PathsConfig)

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILE_NAME

    @property
    def git_dir(self) -> Path:
        return self.root / GIT_DIR_NAME

    @property
    def manifest_path(self) -> Path:
        """Path to the shared manifest carrying the version."""
        return self.root / self.paths.manifest

    @property
    def lock_path(self) -> Path:
        return self.root / self.paths.lock_file

    @property
    def packages_dir(self) -> Path:
        """Directory whose immediate subdirectories are the packages."""
        return self.root / self.paths.packages

    @property
    def staging_root(self) -> Path:
        """External staging directory, a sibling of the repository root.

        It must live outside the working tree: isolation wipes the root.
        """
        return self.root.parent / self.paths.staging_dir

    def with_config(self, config: Config) -> Workspace:
        return Workspace(root=self.root, paths=config.paths)


def is_workspace_root(path: Path) -> bool:
    """True if ``path`` holds git metadata and either the manifest or pkgrel.toml."""
    if not (path / GIT_DIR_NAME).exists():
        return False
    return (path / PathsConfig().manifest).is_file() or (path / CONFIG_FILE_NAME).is_file()


def find_workspace_upward(start: Path) -> Path | None:
    """Walk from ``start`` towards the filesystem root looking for a workspace."""
    current = start.resolve()
    for candidate in (current, *current.parents):
        if is_workspace_root(candidate):
            return candidate
    return None


def detect_workspace(
    root: Path | None = None,
    *,
    cwd: Path | None = None,
) -> Result[Workspace, WorkspaceError]:
    """Resolve the repository root.

    Args:
        root: Explicit root, takes precedence over everything else.
        cwd: Starting directory for the upward search (defaults to cwd).

    Returns:
        Ok(Workspace) or Err(WorkspaceError)
    """
    if root is None:
        env = os.environ.get(ROOT_ENV_VAR)
        if env:
            root = Path(env)

    if root is not None:
        resolved = root.expanduser().resolve()
        if not is_workspace_root(resolved):
            return Err(
                WorkspaceError(
                    f"not a monorepo root (needs .git and {PathsConfig().manifest} "
                    f"or {CONFIG_FILE_NAME}): {resolved}",
                    searched_from=resolved,
                )
            )
        return Ok(Workspace(root=resolved))

    start = cwd or Path.cwd()
    found = find_workspace_upward(start)
    if found is None:
        return Err(
            WorkspaceError(
                "could not find a monorepo root above the current directory",
                searched_from=start,
            )
        )
    return Ok(Workspace(root=found))
