"""Exit codes for the pkgrel CLI.

Each flow failure maps onto one of these codes so scripts wrapping pkgrel can
tell a bad manifest apart from a failed build or a rejected push.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Process exit codes. Values are stable.

    - 0: Success (including "nothing to push")
    - 1: User error (malformed manifest version, bad options)
    - 2: Environment error (not a git repository, invalid pkgrel.toml)
    - 3: Build error (build runner or package manager install failed)
    - 4: Network error (push to the remote failed)
    - 5: I/O error (staging copy failed or staged content went missing)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
