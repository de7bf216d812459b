"""Prepare flow: cut one isolated release branch per package.

Steps, each depending on the previous one succeeding:

1. create a temporary work branch off the operator's branch
2. run the build
3. create ``release-<pkg>-vX-Y-Z`` for every package
4. copy every package directory to the staging root (outside the repo)
5. per package: checkout its branch, wipe the root except ``.git``,
   move the staged copy into the root, commit ``vX.Y.Z``
6. return to the operator's branch
7. bump the manifest version, run install, commit the bump
8. remove the staging root and the temporary branch

Every step that changes repository state registers its undo on the session's
rollback stack. If a step fails the stack unwinds and the step's error is
returned.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from functools import partial
from pathlib import Path

from pkgrel.core.config import Config
from pkgrel.core.result import Err, Ok, Result
from pkgrel.core.workspace import Workspace
from pkgrel.git.repository import GitBackend
from pkgrel.output.console import ConsoleProtocol, Style
from pkgrel.platform.files import FileOps, LocalFileOps
from pkgrel.platform.process import CommandRunner, run_silent
from pkgrel.release.errors import ReleaseError, ReleaseErrorKind, command_failure, git_failure
from pkgrel.release.naming import (
    bump_commit_message,
    release_branch_name,
    release_branch_names,
    release_commit_message,
    temp_branch_name,
)
from pkgrel.release.packages import discover_packages
from pkgrel.release.session import ReleaseSession
from pkgrel.release.version import Version, read_manifest_version, write_manifest_version

__all__ = ["PreparePlan", "PrepareResult", "plan_prepare", "prepare_release"]

GIT_METADATA = frozenset({".git"})

Step = Callable[[ReleaseSession], Result[None, ReleaseError]]


@dataclass(frozen=True, slots=True)
class PreparePlan:
    """Everything prepare will do, resolved before any side effect."""

    current: Version
    target: Version
    packages: tuple[str, ...]
    branches: tuple[str, ...]
    temp_branch: str
    staging_root: Path


@dataclass(frozen=True, slots=True)
class PrepareResult:
    previous: Version
    version: Version
    branches: tuple[str, ...]


def plan_prepare(
    *,
    workspace: Workspace,
    files: FileOps | None = None,
    now: datetime | None = None,
) -> Result[PreparePlan, ReleaseError]:
    """Read version and packages; fails fast on a malformed manifest."""
    current = read_manifest_version(workspace.manifest_path)
    if isinstance(current, Err):
        return current

    packages = discover_packages(workspace.packages_dir, files=files)
    if isinstance(packages, Err):
        return packages

    target = current.value.bump_minor()
    return Ok(
        PreparePlan(
            current=current.value,
            target=target,
            packages=tuple(packages.value),
            branches=tuple(release_branch_names(packages.value, target)),
            temp_branch=temp_branch_name(now),
            staging_root=workspace.staging_root,
        )
    )


def prepare_release(
    *,
    workspace: Workspace,
    config: Config,
    git: GitBackend,
    console: ConsoleProtocol,
    files: FileOps | None = None,
    run_command: CommandRunner = run_silent,
    now: datetime | None = None,
    verbose: bool = False,
) -> Result[PrepareResult, ReleaseError]:
    """Run the full prepare flow.

    Returns:
        Ok(PrepareResult) listing the committed release branches, or the
        first step's ReleaseError after the rollback stack has unwound.
    """
    fs = files or LocalFileOps()
    plan = plan_prepare(workspace=workspace, files=fs, now=now)
    if isinstance(plan, Err):
        return plan

    start = git.current_branch()
    if start is None:
        return Err(
            ReleaseError(
                kind="detached_head",
                message="cannot prepare a release from a detached HEAD",
                hint="Checkout the branch the version bump should land on.",
            )
        )

    session = ReleaseSession(
        workspace=workspace,
        config=config,
        git=git,
        files=fs,
        console=console,
        run_command=run_command,
        start_branch=start,
        current_branch=start,
        version=plan.value.target,
        packages=list(plan.value.packages),
        verbose=verbose,
    )
    console.info(f"releasing {len(session.packages)} package(s) at {session.version.to_tag()}")

    steps: list[Step] = [
        partial(_create_temp_branch, name=plan.value.temp_branch),
        _build,
        _create_release_branches,
        _stage_packages,
        _isolate_packages,
        _return_to_start,
        _bump_manifest,
    ]
    for step in steps:
        result = step(session)
        if isinstance(result, Err):
            return _abort(session, result.error)

    # The release is committed; nothing below is undone any more.
    session.rollback.clear()

    cleaned = _cleanup(session)
    if isinstance(cleaned, Err):
        return cleaned

    console.success(f"created {len(session.committed_branches)} release branch(es)")
    for branch in session.committed_branches:
        console.print(f"  - {branch}")

    return Ok(
        PrepareResult(
            previous=plan.value.current,
            version=session.version,
            branches=tuple(session.committed_branches),
        )
    )


def _abort(session: ReleaseSession, error: ReleaseError) -> Err[ReleaseError]:
    if len(session.rollback) == 0:
        return Err(error)

    session.console.header(f"Rolling back after failure: {error.message}")
    failed = session.rollback.unwind(session.console)
    if failed:
        hint = "manual cleanup needed: " + "; ".join(failed)
        return Err(ReleaseError(kind=error.kind, message=error.message, hint=hint))
    session.console.success(f"restored {session.start_branch}")
    return Err(error)


# -----------------------------------------------------------------------------
# Branch helpers
# -----------------------------------------------------------------------------


def _force_checkout(session: ReleaseSession, branch: str) -> Result[None, str]:
    session.echo(f"git checkout -f {branch}")
    result = session.git.checkout(branch, force=True)
    if isinstance(result, Err):
        return Err(result.error.message)
    session.current_branch = branch
    return Ok(None)


def _delete_branch(session: ReleaseSession, branch: str) -> Result[None, str]:
    session.echo(f"git branch -D {branch}")
    result = session.git.delete_branch(branch)
    if isinstance(result, Err):
        return Err(result.error.message)
    return Ok(None)


def _remove_staging(session: ReleaseSession) -> Result[None, str]:
    try:
        session.files.remove_tree(session.workspace.staging_root)
    except OSError as e:
        return Err(str(e))
    return Ok(None)


def _switch_branch(session: ReleaseSession, branch: str) -> Result[None, ReleaseError]:
    """Checkout an existing branch; undo returns to the branch we left."""
    previous = session.current_branch
    session.echo(f"git checkout {branch}")
    result = session.git.checkout(branch)
    if isinstance(result, Err):
        return Err(git_failure(result.error, f"failed to checkout {branch}"))

    session.current_branch = branch
    session.rollback.push(f"checkout {previous}", partial(_force_checkout, session, previous))
    return Ok(None)


def _run_tool(
    session: ReleaseSession, cmd: tuple[str, ...], *, kind: ReleaseErrorKind
) -> Result[None, ReleaseError]:
    """Run a configured build or install command in the repository root."""
    session.echo(" ".join(cmd))
    result = session.run_command(list(cmd), session.workspace.root)
    if isinstance(result, Err):
        return Err(command_failure(kind, result.error, f"{' '.join(cmd)} failed"))
    return Ok(None)


# -----------------------------------------------------------------------------
# Steps
# -----------------------------------------------------------------------------


def _create_temp_branch(session: ReleaseSession, *, name: str) -> Result[None, ReleaseError]:
    session.console.header(f"Creating temporary branch {name}")
    session.echo(f"git checkout -b {name}")
    result = session.git.checkout(name, create=True)
    if isinstance(result, Err):
        return Err(git_failure(result.error, f"failed to create temporary branch {name}"))

    previous = session.current_branch
    session.temp_branch = name
    session.current_branch = name
    session.rollback.push(f"delete branch {name}", partial(_delete_branch, session, name))
    session.rollback.push(f"checkout {previous}", partial(_force_checkout, session, previous))
    return Ok(None)


def _build(session: ReleaseSession) -> Result[None, ReleaseError]:
    session.console.header("Building packages")
    built = _run_tool(session, session.config.commands.build, kind="build_failed")
    if isinstance(built, Err):
        return built
    session.console.success("build finished")
    return Ok(None)


def _create_release_branches(session: ReleaseSession) -> Result[None, ReleaseError]:
    session.console.header("Creating release branches")
    for package in session.packages:
        branch = release_branch_name(package, session.version)
        session.echo(f"git branch {branch}")
        result = session.git.create_branch(branch)
        if isinstance(result, Err):
            return Err(git_failure(result.error, f"failed to create branch {branch}"))
        session.created_branches.append(branch)
        session.rollback.push(f"delete branch {branch}", partial(_delete_branch, session, branch))
        session.console.print(f"  {branch}", Style.DIM)
    return Ok(None)


def _stage_packages(session: ReleaseSession) -> Result[None, ReleaseError]:
    """Copy each package outside the working tree so it survives the root wipe."""
    staging_root = session.workspace.staging_root
    session.console.header(f"Copying packages to {staging_root}")

    if session.files.exists(staging_root):
        session.console.warning(f"removing stale staging directory {staging_root}")
        stale = _remove_staging(session)
        if isinstance(stale, Err):
            return Err(
                ReleaseError(
                    kind="staging_failed",
                    message=f"failed to remove stale staging directory {staging_root}",
                    hint=stale.error,
                )
            )

    session.rollback.push(f"remove {staging_root}", partial(_remove_staging, session))
    for package in session.packages:
        src = session.workspace.packages_dir / package
        dest = staging_root / package
        try:
            session.files.copy_tree(src, dest)
        except OSError as e:
            return Err(
                ReleaseError(
                    kind="staging_failed",
                    message=f"failed to copy {package} to {dest}",
                    hint=str(e),
                )
            )
        session.staged[package] = dest
    return Ok(None)


def _isolate_package(session: ReleaseSession, package: str) -> Result[None, ReleaseError]:
    branch = release_branch_name(package, session.version)
    session.console.header(f"Isolating {package} on {branch}")

    switched = _switch_branch(session, branch)
    if isinstance(switched, Err):
        return switched

    root = session.workspace.root
    try:
        session.files.clear_dir(root, keep=GIT_METADATA)
    except OSError as e:
        return Err(
            ReleaseError(kind="staging_failed", message=f"failed to clean {root}", hint=str(e))
        )

    staged = session.staged.get(package)
    if staged is None or not session.files.exists(staged):
        return Err(
            ReleaseError(
                kind="staging_missing",
                message=f"isolated content missing: {package}",
                hint=f"expected a staged copy under {session.workspace.staging_root}",
            )
        )

    try:
        session.files.move_contents(staged, root)
    except OSError as e:
        return Err(
            ReleaseError(
                kind="staging_failed",
                message=f"failed to move {package} into {root}",
                hint=str(e),
            )
        )

    message = release_commit_message(session.version)
    session.echo("git add .")
    added = session.git.add(["."])
    if isinstance(added, Err):
        return Err(git_failure(added.error, f"failed to stage {package} on {branch}"))
    session.echo(f'git commit -m "{message}"')
    committed = session.git.commit(message)
    if isinstance(committed, Err):
        return Err(git_failure(committed.error, f"failed to commit {package} on {branch}"))

    session.committed_branches.append(branch)
    session.console.success(f"{branch} committed")
    return Ok(None)


def _isolate_packages(session: ReleaseSession) -> Result[None, ReleaseError]:
    for package in session.packages:
        result = _isolate_package(session, package)
        if isinstance(result, Err):
            return result
    return Ok(None)


def _return_to_start(session: ReleaseSession) -> Result[None, ReleaseError]:
    session.console.header(f"Returning to {session.start_branch}")
    return _switch_branch(session, session.start_branch)


def _snapshot(path: Path) -> bytes | None:
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None


def _restore(path: Path, content: bytes | None) -> Result[None, str]:
    try:
        if content is None:
            path.unlink(missing_ok=True)
        else:
            path.write_bytes(content)
    except OSError as e:
        return Err(str(e))
    return Ok(None)


def _bump_manifest(session: ReleaseSession) -> Result[None, ReleaseError]:
    workspace = session.workspace
    version = session.version
    session.console.header(f"Bumping {workspace.paths.manifest} to {version}")

    manifest_before = _snapshot(workspace.manifest_path)
    lock_before = _snapshot(workspace.lock_path)
    session.rollback.push(
        f"restore {workspace.paths.lock_file}",
        partial(_restore, workspace.lock_path, lock_before),
    )
    session.rollback.push(
        f"restore {workspace.paths.manifest}",
        partial(_restore, workspace.manifest_path, manifest_before),
    )

    written = write_manifest_version(workspace.manifest_path, version)
    if isinstance(written, Err):
        return written

    installed = _run_tool(session, session.config.commands.install, kind="install_failed")
    if isinstance(installed, Err):
        return installed

    paths = [workspace.paths.manifest]
    if workspace.lock_path.exists():
        paths.append(workspace.paths.lock_file)
    session.echo(f"git add {' '.join(paths)}")
    added = session.git.add(paths)
    if isinstance(added, Err):
        return Err(git_failure(added.error, "failed to stage the version bump"))

    message = bump_commit_message(version)
    session.echo(f'git commit -m "{message}"')
    committed = session.git.commit(message)
    if isinstance(committed, Err):
        return Err(git_failure(committed.error, "failed to commit the version bump"))

    session.console.success(f"version bumped to {version.to_tag()}")
    return Ok(None)


def _cleanup(session: ReleaseSession) -> Result[None, ReleaseError]:
    session.console.header("Cleaning up")
    staging_root = session.workspace.staging_root
    removed = _remove_staging(session)
    if isinstance(removed, Err):
        return Err(
            ReleaseError(
                kind="staging_failed",
                message=f"release committed but {staging_root} could not be removed",
                hint=removed.error,
            )
        )

    if session.temp_branch is not None:
        deleted = _delete_branch(session, session.temp_branch)
        if isinstance(deleted, Err):
            return Err(
                ReleaseError(
                    kind="git_failed",
                    message=f"release committed but {session.temp_branch} could not be deleted",
                    hint=deleted.error,
                )
            )
    return Ok(None)
