from __future__ import annotations

import json
from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

import pkgrel.cli.commands.distribute as distribute_cmd
import pkgrel.cli.commands.prepare as prepare_cmd
from pkgrel import __version__
from pkgrel.cli.app import app
from pkgrel.cli.commands._helpers import release_error_code
from pkgrel.cli.context import CLIContext, build_context
from pkgrel.core.config import Config, GitConfig
from pkgrel.core.errors import ErrorCode
from pkgrel.core.result import Err, Result
from pkgrel.core.workspace import ROOT_ENV_VAR, Workspace
from pkgrel.output.console import MockConsole
from pkgrel.release.errors import ReleaseError
from pkgrel.release.prepare import PrepareResult

from ..release._fakes import FakeGit

runner = CliRunner()


def make_repo(root: Path, version: str = "1.1.0") -> Path:
    (root / ".git").mkdir(parents=True)
    (root / "package.json").write_text(
        json.dumps({"name": "mono", "version": version}) + "\n", encoding="utf-8"
    )
    for name in ("core", "utils"):
        (root / "packages" / name).mkdir(parents=True)
    return root


def make_context(root: Path, git: FakeGit, config: Config | None = None) -> CLIContext:
    cfg = config or Config()
    return CLIContext(
        workspace=Workspace(root=root).with_config(cfg),
        config=cfg,
        git=git,
        console=MockConsole(),
    )


@pytest.fixture(autouse=True)
def no_root_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(ROOT_ENV_VAR, raising=False)


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_root_must_be_a_monorepo(tmp_path: Path) -> None:
    result = runner.invoke(app, ["--root", str(tmp_path), "distribute"])
    assert result.exit_code == int(ErrorCode.ENV_ERROR)


def test_build_context_outside_repository(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv(ROOT_ENV_VAR, str(tmp_path))
    with pytest.raises(typer.Exit) as exc:
        build_context()
    assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)


def test_build_context_reads_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    root = make_repo(tmp_path / "mono")
    (root / "pkgrel.toml").write_text('[git]\nremote = "upstream"\n', encoding="utf-8")
    monkeypatch.setenv(ROOT_ENV_VAR, str(root))

    ctx = build_context()

    assert ctx.workspace.root == root.resolve()
    assert ctx.config.git.remote == "upstream"


def test_build_context_rejects_broken_config(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    root = make_repo(tmp_path / "mono")
    (root / "pkgrel.toml").write_text("[git\n", encoding="utf-8")
    monkeypatch.setenv(ROOT_ENV_VAR, str(root))

    with pytest.raises(typer.Exit) as exc:
        build_context()
    assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)


class TestDistributeCommand:
    def test_pushes_to_configured_remote(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        root = make_repo(tmp_path / "mono")
        git = FakeGit(root)
        git.branches["release-core-v1-1-0"] = {}
        config = Config(git=GitConfig(remote="upstream"))
        ctx = make_context(root, git, config)
        monkeypatch.setattr(distribute_cmd, "build_context", lambda: ctx)

        result = runner.invoke(app, ["distribute"])

        assert result.exit_code == 0
        assert git.pushes == [("upstream", "release-core-v1-1-0")]

    def test_remote_option_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        root = make_repo(tmp_path / "mono")
        git = FakeGit(root)
        git.branches["release-utils-v1-1-0"] = {}
        monkeypatch.setattr(distribute_cmd, "build_context", lambda: make_context(root, git))

        result = runner.invoke(app, ["distribute", "--remote", "mirror"])

        assert result.exit_code == 0
        assert git.pushes == [("mirror", "release-utils-v1-1-0")]

    def test_nothing_to_push_exits_zero(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        root = make_repo(tmp_path / "mono")
        git = FakeGit(root)
        ctx = make_context(root, git)
        monkeypatch.setattr(distribute_cmd, "build_context", lambda: ctx)

        result = runner.invoke(app, ["distribute"])

        assert result.exit_code == 0
        assert isinstance(ctx.console, MockConsole)
        assert ctx.console.has_warning()

    def test_push_failure_is_network_error(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        root = make_repo(tmp_path / "mono")
        git = FakeGit(root)
        git.branches["release-core-v1-1-0"] = {}
        git.fail("push origin release-core-v1-1-0", "rejected")
        ctx = make_context(root, git)
        monkeypatch.setattr(distribute_cmd, "build_context", lambda: ctx)

        result = runner.invoke(app, ["distribute"])

        assert result.exit_code == int(ErrorCode.NETWORK_ERROR)
        assert isinstance(ctx.console, MockConsole)
        assert ctx.console.find("hint: rejected")

    def test_dry_run_pushes_nothing(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        root = make_repo(tmp_path / "mono")
        git = FakeGit(root)
        git.branches["release-core-v1-1-0"] = {}
        monkeypatch.setattr(distribute_cmd, "build_context", lambda: make_context(root, git))

        result = runner.invoke(app, ["distribute", "--dry-run"])

        assert result.exit_code == 0
        assert git.pushes == []


class TestPrepareCommand:
    def test_dry_run_prints_plan(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        root = make_repo(tmp_path / "mono", version="2.3.4")
        git = FakeGit(root)
        ctx = make_context(root, git)
        monkeypatch.setattr(prepare_cmd, "build_context", lambda: ctx)

        result = runner.invoke(app, ["prepare", "--dry-run"])

        assert result.exit_code == 0
        assert git.calls == []
        assert isinstance(ctx.console, MockConsole)
        assert ctx.console.find("Release plan 2.3.4 -> 2.4.0")
        assert ctx.console.find("release-core-v2-4-0")
        assert ctx.console.find("release-utils-v2-4-0")

    def test_invalid_version_is_user_error(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        root = make_repo(tmp_path / "mono", version="1.0")
        monkeypatch.setattr(
            prepare_cmd, "build_context", lambda: make_context(root, FakeGit(root))
        )

        result = runner.invoke(app, ["prepare", "--dry-run"])

        assert result.exit_code == int(ErrorCode.USER_ERROR)

    def test_flow_error_maps_to_exit_code(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        root = make_repo(tmp_path / "mono")
        ctx = make_context(root, FakeGit(root))
        seen: dict[str, object] = {}

        def fake_prepare_release(**kwargs: object) -> Result[PrepareResult, ReleaseError]:
            seen.update(kwargs)
            return Err(ReleaseError(kind="build_failed", message="build failed"))

        monkeypatch.setattr(prepare_cmd, "build_context", lambda: ctx)
        monkeypatch.setattr(prepare_cmd, "prepare_release", fake_prepare_release)

        result = runner.invoke(app, ["prepare", "--verbose"])

        assert result.exit_code == int(ErrorCode.BUILD_ERROR)
        assert seen["verbose"] is True
        assert seen["workspace"] == ctx.workspace


@pytest.mark.parametrize(
    ("kind", "code"),
    [
        ("invalid_version", ErrorCode.USER_ERROR),
        ("detached_head", ErrorCode.ENV_ERROR),
        ("install_failed", ErrorCode.BUILD_ERROR),
        ("push_failed", ErrorCode.NETWORK_ERROR),
        ("staging_missing", ErrorCode.IO_ERROR),
    ],
)
def test_release_error_codes(kind: str, code: ErrorCode) -> None:
    assert release_error_code(kind) == code
