"""End-to-end prepare + distribute against a real git repository."""

from __future__ import annotations

import json
import shutil
import subprocess
from pathlib import Path

import pytest

from pkgrel.core.config import CommandsConfig, Config
from pkgrel.core.result import Ok
from pkgrel.core.workspace import Workspace
from pkgrel.git.repository import Repository
from pkgrel.output.console import MockConsole
from pkgrel.release.distribute import distribute_release
from pkgrel.release.prepare import prepare_release

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")

# Stand-ins for turbo and npm: both succeed without touching the tree.
NOOP = ("git", "--version")


def git(root: Path, *args: str) -> str:
    proc = subprocess.run(
        ["git", "-C", str(root), *args], capture_output=True, text=True, check=True
    )
    return proc.stdout


@pytest.fixture
def isolated_git(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(home / ".gitconfig"))
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Release Bot")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "release@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Release Bot")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "release@example.com")


@pytest.fixture
def monorepo(tmp_path: Path, isolated_git: None) -> Path:
    root = tmp_path / "mono"
    root.mkdir()
    git(root, "init", "-q")
    git(root, "checkout", "-q", "-b", "main")

    (root / "package.json").write_text(
        json.dumps({"name": "mono", "version": "1.0.0"}, indent=2) + "\n"
    )
    (root / "package-lock.json").write_text('{"lockfileVersion": 3}\n')
    for name in ("a", "b"):
        pkg = root / "packages" / name
        pkg.mkdir(parents=True)
        (pkg / "index.js").write_text(f"module.exports = '{name}';\n")
    (root / "packages" / "README.md").write_text("# packages\n")

    git(root, "add", ".")
    git(root, "commit", "-q", "-m", "initial")
    return root


def test_prepare_then_distribute(monorepo: Path, tmp_path: Path) -> None:
    remote = tmp_path / "remote.git"
    git(tmp_path, "init", "-q", "--bare", str(remote))
    git(monorepo, "remote", "add", "origin", str(remote))

    workspace = Workspace(root=monorepo)
    repo = Repository(monorepo)
    config = Config(commands=CommandsConfig(build=NOOP, install=NOOP))

    prepared = prepare_release(
        workspace=workspace, config=config, git=repo, console=MockConsole()
    )

    assert isinstance(prepared, Ok)
    assert sorted(prepared.value.branches) == ["release-a-v1-1-0", "release-b-v1-1-0"]

    branches = git(monorepo, "branch", "--format=%(refname:short)").split()
    assert sorted(branches) == ["main", "release-a-v1-1-0", "release-b-v1-1-0"]
    assert git(monorepo, "rev-parse", "--abbrev-ref", "HEAD").strip() == "main"

    for name in ("a", "b"):
        branch = f"release-{name}-v1-1-0"
        assert git(monorepo, "ls-tree", "-r", "--name-only", branch).split() == ["index.js"]
        assert git(monorepo, "show", f"{branch}:index.js") == f"module.exports = '{name}';\n"
        assert git(monorepo, "log", "-1", "--format=%s", branch).strip() == "v1.1.0"

    manifest = json.loads((monorepo / "package.json").read_text())
    assert manifest["version"] == "1.1.0"
    assert git(monorepo, "log", "-1", "--format=%s").strip() == "chore: bump version to v1.1.0"
    assert git(monorepo, "status", "--porcelain").strip() == ""
    assert not (tmp_path / ".temp-isolation").exists()

    distributed = distribute_release(workspace=workspace, git=repo, console=MockConsole())

    assert isinstance(distributed, Ok)
    assert sorted(distributed.value.pushed) == ["release-a-v1-1-0", "release-b-v1-1-0"]
    remote_branches = git(remote, "branch", "--format=%(refname:short)").split()
    assert sorted(remote_branches) == ["release-a-v1-1-0", "release-b-v1-1-0"]
