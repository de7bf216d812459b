from __future__ import annotations

import os
from pathlib import Path

import typer

from pkgrel import __version__
from pkgrel.cli.commands.distribute import distribute
from pkgrel.cli.commands.prepare import prepare
from pkgrel.core.errors import ErrorCode
from pkgrel.core.workspace import ROOT_ENV_VAR, is_workspace_root


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(prepare)
app.command()(distribute)


def _show_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        callback=_show_version,
        is_eager=True,
        help="Show version and exit.",
    ),
    root: Path | None = typer.Option(
        None,
        "--root",
        help=f"Monorepo root (overrides {ROOT_ENV_VAR} and auto detection)",
    ),
) -> None:
    if root is not None:
        try:
            resolved = root.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --root: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        if not resolved.is_dir() or not is_workspace_root(resolved):
            typer.echo(
                f"error: --root '{resolved}' is not a monorepo root (missing .git or manifest)",
                err=True,
            )
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

        os.environ[ROOT_ENV_VAR] = str(resolved)


def main() -> None:
    app()
