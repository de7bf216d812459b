"""Filesystem operations used by the prepare flow.

``FileOps`` is the capability the release flows depend on; ``LocalFileOps``
implements it on the real filesystem with shutil. Tests can substitute a
subclass to simulate lost or failing copies.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from typing import Protocol

__all__ = ["FileOps", "LocalFileOps", "atomic_write_text"]


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Write text to path atomically using temp file + replace."""
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.",
        suffix=".tmp",
        dir=str(path.parent),
    )
    tmp_path = Path(tmp_name)

    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


class FileOps(Protocol):
    """Copy/move/delete capability for release isolation.

    Methods raise OSError on failure; callers convert to Result.
    """

    def list_dirs(self, root: Path) -> list[str]:
        """Names of the immediate subdirectories of ``root``, in listing order."""
        ...

    def exists(self, path: Path) -> bool: ...

    def copy_tree(self, src: Path, dest: Path) -> None:
        """Recursively copy ``src`` to ``dest``, creating ``dest``."""
        ...

    def move_contents(self, src: Path, dest: Path) -> None:
        """Move every entry of ``src`` into ``dest``, merging directories."""
        ...

    def clear_dir(self, root: Path, *, keep: frozenset[str]) -> None:
        """Delete every entry of ``root`` except names in ``keep``."""
        ...

    def remove_tree(self, path: Path) -> None:
        """Delete ``path`` recursively if it exists."""
        ...


class LocalFileOps:
    """FileOps backed by the local filesystem."""

    def list_dirs(self, root: Path) -> list[str]:
        with os.scandir(root) as it:
            return [entry.name for entry in it if entry.is_dir()]

    def exists(self, path: Path) -> bool:
        return path.exists()

    def copy_tree(self, src: Path, dest: Path) -> None:
        shutil.copytree(src, dest, symlinks=True, dirs_exist_ok=True)

    def move_contents(self, src: Path, dest: Path) -> None:
        dest.mkdir(parents=True, exist_ok=True)
        for child in list(src.iterdir()):
            target = dest / child.name
            if child.is_dir() and not child.is_symlink() and target.is_dir():
                self.move_contents(child, target)
                child.rmdir()
            else:
                shutil.move(str(child), str(target))

    def clear_dir(self, root: Path, *, keep: frozenset[str]) -> None:
        for child in list(root.iterdir()):
            if child.name in keep:
                continue
            _remove_path(child)

    def remove_tree(self, path: Path) -> None:
        if path.exists() or path.is_symlink():
            _remove_path(path)


def _remove_path(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()
