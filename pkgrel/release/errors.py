"""Error types for the release flows."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pkgrel.git.repository import GitError
from pkgrel.platform.process import ProcessError

ReleaseErrorKind = Literal[
    "invalid_version",
    "invalid_manifest",
    "packages_missing",
    "not_a_repo",
    "detached_head",
    "git_failed",
    "build_failed",
    "install_failed",
    "staging_failed",
    "staging_missing",
    "push_failed",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical failure payload of a prepare or distribute step."""

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message


def git_failure(error: GitError, message: str) -> ReleaseError:
    return ReleaseError(kind="git_failed", message=message, hint=error.message or None)


def command_failure(
    kind: ReleaseErrorKind, error: ProcessError, message: str
) -> ReleaseError:
    """Wrap a failed build/install command."""
    return ReleaseError(kind=kind, message=message, hint=error.stderr.strip() or str(error))
