"""Process exit codes for the ``rflow`` CLI.

The numeric values are part of the CI contract (workflow steps branch on them)
and must remain stable:
- 0: Success
- 1: User error (bad input, guardrail refused the release)
- 2: Environment error (gh missing, bad config, repository identity missing)
- 4: Network error (release-hosting API unreachable or rejecting a call)
- 5: I/O error (git or file stamping failed)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands."""

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
