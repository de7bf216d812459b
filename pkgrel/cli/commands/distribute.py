from __future__ import annotations

import typer

from pkgrel.cli.commands._helpers import exit_on_error
from pkgrel.cli.context import build_context
from pkgrel.release.distribute import distribute_release


def distribute(
    remote: str | None = typer.Option(
        None, "--remote", help="Remote to push to (default: [git].remote or origin)."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="List the branches that would be pushed."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Echo every external command."),
) -> None:
    """Push the release branches of the current version to the remote."""
    ctx = build_context()
    exit_on_error(
        distribute_release(
            workspace=ctx.workspace,
            git=ctx.git,
            console=ctx.console,
            remote=remote or ctx.config.git.remote,
            dry_run=dry_run,
            verbose=verbose,
        ),
        ctx.console,
    )
