"""Git repository abstraction.

``Repository`` wraps the git CLI for the handful of operations the release
flows need. ``GitBackend`` is the protocol the flows are written against, so
tests can drive them with an in-memory fake.

Query commands (branch listing, current branch) capture output. Commands that
change state stream their output to the operator's terminal.

Usage:
    repo = Repository(Path("/path/to/monorepo"))

    match repo.list_branches():
        case Ok(branches):
            print(", ".join(branches))
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from pkgrel.core.result import Err, Ok, Result
from pkgrel.platform.process import ProcessError
from pkgrel.platform.process import run as run_process
from pkgrel.platform.process import run_silent

__all__ = [
    "GitBackend",
    "GitError",
    "Repository",
    "parse_branch_list",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed (e.g. "checkout")
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


class GitBackend(Protocol):
    """Branch/commit/checkout capability used by the release flows."""

    def current_branch(self) -> str | None:
        """Current branch name, or None on detached HEAD or error."""
        ...

    def list_branches(self) -> Result[list[str], GitError]: ...

    def create_branch(self, name: str) -> Result[None, GitError]:
        """Create ``name`` at HEAD without switching to it."""
        ...

    def checkout(
        self, name: str, *, create: bool = False, force: bool = False
    ) -> Result[None, GitError]: ...

    def delete_branch(self, name: str) -> Result[None, GitError]:
        """Force-delete a local branch."""
        ...

    def add(self, paths: Sequence[str]) -> Result[None, GitError]: ...

    def commit(self, message: str) -> Result[None, GitError]: ...

    def push(self, remote: str, branch: str) -> Result[None, GitError]: ...


def parse_branch_list(output: str) -> list[str]:
    """Split branch listing output into names, dropping blank lines."""
    return [line.strip() for line in output.strip().splitlines() if line.strip()]


class Repository:
    """GitBackend implementation driving the git CLI.

    Attributes:
        path: Path to the repository root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        """Check if this is a valid git repository."""
        return (self.path / ".git").exists()

    def current_branch(self) -> str | None:
        result = self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        match result:
            case Ok(stdout):
                branch = stdout.strip()
                return None if branch in ("", "HEAD") else branch
            case Err(_):
                return None

    def list_branches(self) -> Result[list[str], GitError]:
        """List local branch names.

        Uses ``--format`` so the current branch is not prefixed with ``*``.
        """
        result = self._run(["branch", "--format=%(refname:short)"])
        match result:
            case Err(e):
                return Err(
                    GitError(
                        command="branch",
                        message=e.stderr.strip() or "git branch failed",
                        returncode=e.returncode,
                    )
                )
            case Ok(stdout):
                return Ok(parse_branch_list(stdout))

    def create_branch(self, name: str) -> Result[None, GitError]:
        return self._run_streamed(["branch", name])

    def checkout(
        self, name: str, *, create: bool = False, force: bool = False
    ) -> Result[None, GitError]:
        args = ["checkout"]
        if force:
            args.append("-f")
        if create:
            args.append("-b")
        args.append(name)
        return self._run_streamed(args)

    def delete_branch(self, name: str) -> Result[None, GitError]:
        return self._run_streamed(["branch", "-D", name])

    def add(self, paths: Sequence[str]) -> Result[None, GitError]:
        return self._run_streamed(["add", *paths])

    def commit(self, message: str) -> Result[None, GitError]:
        return self._run_streamed(["commit", "-m", message])

    def push(self, remote: str, branch: str) -> Result[None, GitError]:
        return self._run_streamed(["push", remote, branch])

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository, capturing output."""
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path)

    def _run_streamed(self, args: list[str]) -> Result[None, GitError]:
        """Run a git command with output going to the terminal."""
        result = run_silent(["git", "-C", str(self.path), *args], cwd=self.path)
        if isinstance(result, Err):
            e = result.error
            return Err(
                GitError(
                    command=args[0],
                    message=e.stderr.strip()
                    or f"git {' '.join(args)} failed (exit {e.returncode})",
                    returncode=e.returncode,
                )
            )
        return Ok(None)
