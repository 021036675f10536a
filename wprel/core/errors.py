"""Exit codes and the error payload shared by every pipeline stage.

The exit code is the only signal a CI platform reads from a failed run, so
the numeric values are stable:
- 0: Success
- 1: User error (bad ref, bad arguments, invalid config)
- 2: Environment error (gh or the plugin checker missing, auth required)
- 3: Check error (plugin check reported errors)
- 4: Network error (GitHub API or release upload failed)
- 5: I/O error (file missing, archive failed)
- 6: Cache miss (no dependency cache for the current lockfiles)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Literal

__all__ = ["ErrorCode", "PipelineError", "PipelineErrorKind"]


class ErrorCode(IntEnum):
    """Process exit codes for CLI commands."""

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    CHECK_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5
    CACHE_MISS = 6

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK


PipelineErrorKind = Literal[
    "invalid_ref",
    "invalid_input",
    "cache_miss",
    "cache_failed",
    "prune_failed",
    "checker_missing",
    "check_failed",
    "version_failed",
    "commit_failed",
    "archive_failed",
    "publish_failed",
    "gh_missing",
    "gh_auth_required",
]


@dataclass(frozen=True, slots=True)
class PipelineError:
    """Error payload returned by services.

    `hint` carries the next thing the user should look at (usually stderr of
    the failed command, or the path involved).
    """

    kind: PipelineErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message
