"""Error codes for CLI exit status.

Every pipeline failure maps onto one of these codes so that CI runners can
tell a broken toolchain apart from a rejected release.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable:
    - 0: Success (including a tag that does not match any trigger pattern)
    - 1: User error (bad arguments, invalid config)
    - 2: Environment error (missing toolchain, gh missing, wrong platform)
    - 3: Build error (compiler/stripper failed, binary not produced)
    - 4: Publish error (release rejected, duplicate tag, upload failed)
    - 5: I/O error (artifact store unreadable or unwritable)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    PUBLISH_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        """Return human-readable name."""
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
