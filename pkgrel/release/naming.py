"""Branch names and commit messages.

Prepare creates release branches and distribute has to find them again, so
both flows build names through ``release_branch_name`` and nothing else.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime

from pkgrel.release.version import Version

TEMP_BRANCH_PREFIX = "release-temp-"


def release_branch_name(package: str, version: Version) -> str:
    return f"release-{package}-v{version.major}-{version.minor}-{version.patch}"


def release_branch_names(packages: Iterable[str], version: Version) -> list[str]:
    return [release_branch_name(pkg, version) for pkg in packages]


def temp_branch_name(now: datetime | None = None) -> str:
    """Temporary work branch, stamped to the second in UTC."""
    stamp = (now or datetime.now(UTC)).strftime("%Y%m%d%H%M%S")
    return f"{TEMP_BRANCH_PREFIX}{stamp}"


def release_commit_message(version: Version) -> str:
    return version.to_tag()


def bump_commit_message(version: Version) -> str:
    return f"chore: bump version to {version.to_tag()}"
