"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent CI logs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from wprel.core.errors import ErrorCode, PipelineError
from wprel.output.console import Style

if TYPE_CHECKING:
    from wprel.output.console import ConsoleProtocol

__all__ = ["print_pipeline_error", "pipeline_error_exit_code"]


def print_pipeline_error(error: PipelineError, console: ConsoleProtocol) -> None:
    """Print a pipeline error followed by its hint, if any."""
    console.error(error.message)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)


def pipeline_error_exit_code(error: PipelineError) -> int:
    """Get the process exit code for a pipeline error."""
    match error.kind:
        case "invalid_ref" | "invalid_input":
            return int(ErrorCode.USER_ERROR)
        case "gh_missing" | "gh_auth_required" | "checker_missing":
            return int(ErrorCode.ENV_ERROR)
        case "check_failed":
            return int(ErrorCode.CHECK_ERROR)
        case "commit_failed" | "publish_failed":
            return int(ErrorCode.NETWORK_ERROR)
        case "cache_miss":
            return int(ErrorCode.CACHE_MISS)
        case "cache_failed" | "prune_failed" | "version_failed" | "archive_failed":
            return int(ErrorCode.IO_ERROR)
    return int(ErrorCode.USER_ERROR)
