from __future__ import annotations

import typer

from wprel.cli.commands._helpers import exit_on_error, require_repository
from wprel.cli.context import build_context
from wprel.services.commit import commit_files
from wprel.services.gh import ensure_gh_auth, ensure_gh_available


def commit(
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the commit plan only"),
) -> None:
    """Commit the version files to the repository's default branch."""
    ctx = build_context()
    repo = require_repository(ctx)
    project = ctx.project

    if not dry_run:
        exit_on_error(ensure_gh_available(), ctx)
        exit_on_error(ensure_gh_auth(workspace_root=project.root), ctx)

    result = exit_on_error(
        commit_files(
            workspace_root=project.root,
            repo=repo,
            branch=project.config.release.branch,
            files=list(project.version_targets()),
            message=project.config.release.commit_message,
            console=ctx.console,
            dry_run=dry_run,
        ),
        ctx,
    )
    if result is not None:
        ctx.console.success(f"{result.sha[:8]} on {result.branch}")
