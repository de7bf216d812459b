from __future__ import annotations

from dataclasses import dataclass

import typer

from pkgrel.core.config import Config, load_config_or_default
from pkgrel.core.errors import ErrorCode
from pkgrel.core.result import Err
from pkgrel.core.workspace import Workspace, detect_workspace
from pkgrel.git.repository import GitBackend, Repository
from pkgrel.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    workspace: Workspace
    config: Config
    git: GitBackend
    console: ConsoleProtocol


def build_context() -> CLIContext:
    workspace_result = detect_workspace()
    if isinstance(workspace_result, Err):
        typer.echo(f"error: {workspace_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    workspace = workspace_result.value
    config_result = load_config_or_default(workspace.config_path)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    config = config_result.value
    return CLIContext(
        workspace=workspace.with_config(config),
        config=config,
        git=Repository(workspace.root),
        console=RichConsole(),
    )
