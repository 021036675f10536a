"""Shared helpers for CLI commands."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, NoReturn, TypeVar

import typer

from wprel.core.errors import ErrorCode, PipelineError
from wprel.core.result import Err, Result
from wprel.output.console import Style
from wprel.output.errors import pipeline_error_exit_code, print_pipeline_error
from wprel.services.model import ReleaseRef
from wprel.services.ref import parse_ref, tag_ref

if TYPE_CHECKING:
    from wprel.cli.context import CLIContext


T = TypeVar("T")


def exit_on_error(result: Result[T, PipelineError], ctx: CLIContext) -> T:
    """Return the Ok value, or print the error and exit with its code.

    Replaces the per-command boilerplate:
        match result:
            case Err(e):
                ctx.console.error(e.message)
                raise typer.Exit(code=...)
            case Ok(value):
                ...
    """
    if isinstance(result, Err):
        print_pipeline_error(result.error, ctx.console)
        raise typer.Exit(code=pipeline_error_exit_code(result.error))
    return result.value


def exit_with_code(code: int) -> NoReturn:
    raise typer.Exit(code=code)


def resolve_ref(*, ref: str | None, tag: str | None) -> Result[ReleaseRef, PipelineError]:
    """Pick the release ref: --tag, then --ref, then $GITHUB_REF."""
    if tag is not None and ref is not None:
        return Err(PipelineError(kind="invalid_input", message="use either --ref or --tag"))
    if tag is not None:
        return parse_ref(tag_ref(tag))
    return parse_ref(ref if ref is not None else os.environ.get("GITHUB_REF", ""))


def require_repository(ctx: CLIContext) -> str:
    repo = ctx.repository
    if repo is None:
        ctx.console.error("target repository unknown")
        ctx.console.print("hint: set GITHUB_REPOSITORY or [release].repository", Style.DIM)
        exit_with_code(int(ErrorCode.USER_ERROR))
    return repo
