"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

import typer

from pkgrel.core.errors import ErrorCode
from pkgrel.core.result import Err, Result
from pkgrel.output.console import Style
from pkgrel.release.errors import ReleaseError

if TYPE_CHECKING:
    from pkgrel.output.console import ConsoleProtocol


T = TypeVar("T")

_EXIT_CODES: dict[str, ErrorCode] = {
    "invalid_version": ErrorCode.USER_ERROR,
    "invalid_manifest": ErrorCode.USER_ERROR,
    "packages_missing": ErrorCode.USER_ERROR,
    "not_a_repo": ErrorCode.ENV_ERROR,
    "detached_head": ErrorCode.ENV_ERROR,
    "git_failed": ErrorCode.ENV_ERROR,
    "build_failed": ErrorCode.BUILD_ERROR,
    "install_failed": ErrorCode.BUILD_ERROR,
    "push_failed": ErrorCode.NETWORK_ERROR,
    "staging_failed": ErrorCode.IO_ERROR,
    "staging_missing": ErrorCode.IO_ERROR,
}


def release_error_code(kind: str) -> ErrorCode:
    return _EXIT_CODES.get(kind, ErrorCode.USER_ERROR)


def exit_on_error(result: Result[T, ReleaseError], console: ConsoleProtocol) -> T:
    """Return the Ok value, or print the error and exit with its code."""
    if isinstance(result, Err):
        error = result.error
        console.error(error.message)
        if error.hint:
            console.print(f"hint: {error.hint}", Style.DIM)
        raise typer.Exit(code=int(release_error_code(error.kind)))
    return result.value
