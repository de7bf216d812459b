from __future__ import annotations

import typer

from pkgrel.cli.commands._helpers import exit_on_error
from pkgrel.cli.context import build_context
from pkgrel.output.console import Style
from pkgrel.release.prepare import plan_prepare, prepare_release


def prepare(
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Print the release plan without touching the repository."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Echo every external command."),
) -> None:
    """Build, bump the minor version and cut one release branch per package."""
    ctx = build_context()

    if dry_run:
        plan = exit_on_error(plan_prepare(workspace=ctx.workspace), ctx.console)
        ctx.console.header(f"Release plan {plan.current} -> {plan.target}")
        ctx.console.print(f"temporary branch: {plan.temp_branch}", Style.DIM)
        ctx.console.print(f"staging root: {plan.staging_root}", Style.DIM)
        if not plan.branches:
            ctx.console.info("no packages found; no release branches would be created")
        for branch in plan.branches:
            ctx.console.print(f"  - {branch}")
        return

    exit_on_error(
        prepare_release(
            workspace=ctx.workspace,
            config=ctx.config,
            git=ctx.git,
            console=ctx.console,
            verbose=verbose,
        ),
        ctx.console,
    )
