"""Error codes for CLI exit status.

Each workflow error maps onto one of these codes (see ``jb.output.errors``),
so scripts driving ``juju-bundle`` in CI can tell a typo in ``--app`` apart
from a store outage.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable:
    - 0: Success
    - 1: User error (unknown app names, conflicting flags)
    - 2: Configuration error (invalid bundle, charm URL or config file)
    - 3: Build error (charmcraft/charm build failed, invalid charm source)
    - 4: Store error (lookup, upload, release or login failed)
    - 5: Deploy error (juju wait/deploy/remove failed)
    - 6: I/O error (file not found, permission denied)
    - 70: Internal error (should never happen)
    """

    OK = 0
    USER_ERROR = 1
    CONFIG_ERROR = 2
    BUILD_ERROR = 3
    STORE_ERROR = 4
    DEPLOY_ERROR = 5
    IO_ERROR = 6
    INTERNAL_ERROR = 70

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
