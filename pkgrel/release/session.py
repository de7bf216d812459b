"""Explicit state of a prepare run.

``ReleaseSession`` carries everything the prepare steps mutate: the branch
the working tree is on, the staged package copies, and the branches created
so far. Each forward step that changes repository state pushes a
compensating action onto ``RollbackStack``; on failure the stack unwinds in
reverse order.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from pkgrel.core.config import Config
from pkgrel.core.result import Err, Result
from pkgrel.core.workspace import Workspace
from pkgrel.git.repository import GitBackend
from pkgrel.output.console import ConsoleProtocol, Style
from pkgrel.platform.files import FileOps
from pkgrel.platform.process import CommandRunner
from pkgrel.release.version import Version

__all__ = ["Compensation", "ReleaseSession", "RollbackStack"]

Undo = Callable[[], Result[None, str]]


@dataclass(frozen=True, slots=True)
class Compensation:
    """Undo action for one completed forward step."""

    description: str
    undo: Undo


def _empty_actions() -> list[Compensation]:
    return []


@dataclass
class RollbackStack:
    """LIFO list of compensating actions."""

    actions: list[Compensation] = field(default_factory=_empty_actions)

    def push(self, description: str, undo: Undo) -> None:
        self.actions.append(Compensation(description, undo))

    def clear(self) -> None:
        """Forget all actions once the forward steps are complete."""
        self.actions.clear()

    def pending(self) -> list[str]:
        """Descriptions in the order ``unwind`` would run them."""
        return [a.description for a in reversed(self.actions)]

    def __len__(self) -> int:
        return len(self.actions)

    def unwind(self, console: ConsoleProtocol) -> list[str]:
        """Run every action, newest first, and empty the stack.

        A failing action is reported and skipped; the remaining actions
        still run. Returns the descriptions of the actions that failed.
        """
        failed: list[str] = []
        while self.actions:
            action = self.actions.pop()
            console.print(f"undo: {action.description}", Style.DIM)
            result = action.undo()
            if isinstance(result, Err):
                console.warning(f"could not {action.description}: {result.error}")
                failed.append(action.description)
        return failed


def _empty_staged() -> dict[str, Path]:
    return {}


def _empty_branches() -> list[str]:
    return []


@dataclass
class ReleaseSession:
    """Mutable context threaded through every prepare step.

    Attributes:
        workspace: Repository being released
        config: Commands and remote settings
        git: Branch/commit/checkout capability
        files: Copy/move/delete capability
        console: Progress output
        run_command: Runner for the build and install commands
        start_branch: Branch the operator started on
        current_branch: Branch the working tree is on right now
        version: Version the release branches are cut at
        packages: Packages being released, in discovery order
        temp_branch: Temporary work branch, once created
        staged: Package name -> staged copy outside the working tree
        created_branches: Release branches created so far
        committed_branches: Release branches holding their isolated commit
        verbose: Echo each external command before running it
    """

    workspace: Workspace
    config: Config
    git: GitBackend
    files: FileOps
    console: ConsoleProtocol
    run_command: CommandRunner
    start_branch: str
    current_branch: str
    version: Version
    packages: list[str]
    temp_branch: str | None = None
    staged: dict[str, Path] = field(default_factory=_empty_staged)
    created_branches: list[str] = field(default_factory=_empty_branches)
    committed_branches: list[str] = field(default_factory=_empty_branches)
    rollback: RollbackStack = field(default_factory=RollbackStack)
    verbose: bool = False

    def echo(self, command: str) -> None:
        if self.verbose:
            self.console.print(f"$ {command}", Style.DIM)
