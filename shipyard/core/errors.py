"""Process exit codes.

A pipeline run ends with exactly one of these codes. Job-local failures
(build, publish) and the manifest gate get distinct values so CI logs can tell
"a platform broke" apart from "the release is incomplete".
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for shipyard commands.

    These values are used as process exit codes and must remain stable:
    - 0: Success
    - 1: User error (bad arguments, invalid shipyard.toml, duplicate matrix entries)
    - 2: Environment error (no checkout found, missing gh/cargo)
    - 3: Build error (at least one matrix job failed to build or publish)
    - 4: Network error (release store unreachable)
    - 5: I/O error (file not found, permission denied)
    - 6: Gate error (manifest missing or ambiguous, release not found)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5
    GATE_ERROR = 6

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK
