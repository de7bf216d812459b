"""Git operations module.

Usage:
    from pkgrel.git import Repository

    repo = Repository(Path("/path/to/monorepo"))
    branch = repo.current_branch()
"""

from pkgrel.git.repository import (
    GitBackend,
    GitError,
    Repository,
    parse_branch_list,
)

__all__ = [
    "GitBackend",
    "GitError",
    "Repository",
    "parse_branch_list",
]
