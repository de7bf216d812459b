"""Distribute flow: push the release branches prepare created.

The current manifest version is used as-is: prepare already committed the
bump, so the branches were cut at the version the manifest now carries.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from pkgrel.core.config import DEFAULT_REMOTE
from pkgrel.core.result import Err, Ok, Result
from pkgrel.core.workspace import Workspace
from pkgrel.git.repository import GitBackend
from pkgrel.output.console import ConsoleProtocol, Style
from pkgrel.platform.files import FileOps
from pkgrel.release.errors import ReleaseError, git_failure
from pkgrel.release.naming import release_branch_names
from pkgrel.release.packages import discover_packages
from pkgrel.release.version import Version, read_manifest_version

__all__ = ["DistributeResult", "distribute_release", "select_branches"]


@dataclass(frozen=True, slots=True)
class DistributeResult:
    version: Version
    expected: tuple[str, ...]
    pushed: tuple[str, ...]
    dry_run: bool = False


def select_branches(expected: Sequence[str], local: Sequence[str]) -> list[str]:
    """Expected branches that exist locally, in expected order."""
    available = set(local)
    return [branch for branch in expected if branch in available]


def distribute_release(
    *,
    workspace: Workspace,
    git: GitBackend,
    console: ConsoleProtocol,
    remote: str = DEFAULT_REMOTE,
    files: FileOps | None = None,
    dry_run: bool = False,
    verbose: bool = False,
) -> Result[DistributeResult, ReleaseError]:
    """Push every expected release branch that exists locally.

    No match is a normal outcome: nothing is pushed and Ok is returned.
    """
    version = read_manifest_version(workspace.manifest_path)
    if isinstance(version, Err):
        return version

    packages = discover_packages(workspace.packages_dir, files=files)
    if isinstance(packages, Err):
        return packages

    expected = release_branch_names(packages.value, version.value)

    if verbose:
        console.print("$ git branch --format=%(refname:short)", Style.DIM)
    local = git.list_branches()
    if isinstance(local, Err):
        return Err(git_failure(local.error, "failed to list local branches"))

    to_push = select_branches(expected, local.value)
    if not to_push:
        console.warning("no matching release branches found to push")
        return Ok(
            DistributeResult(
                version=version.value, expected=tuple(expected), pushed=(), dry_run=dry_run
            )
        )

    console.header(f"Pushing {len(to_push)} release branch(es) to {remote}")
    pushed: list[str] = []
    for branch in to_push:
        if dry_run:
            console.print(f"would push {branch}", Style.DIM)
            continue
        console.print(f"push {branch}", Style.DIM)
        if verbose:
            console.print(f"$ git push {remote} {branch}", Style.DIM)
        result = git.push(remote, branch)
        if isinstance(result, Err):
            return Err(
                ReleaseError(
                    kind="push_failed",
                    message=f"failed to push {branch} to {remote}",
                    hint=result.error.message or None,
                )
            )
        pushed.append(branch)

    if dry_run:
        console.info(f"dry run: {len(to_push)} branch(es) would be pushed")
    else:
        console.success(f"pushed {len(pushed)} release branch(es)")

    return Ok(
        DistributeResult(
            version=version.value,
            expected=tuple(expected),
            pushed=tuple(pushed),
            dry_run=dry_run,
        )
    )
