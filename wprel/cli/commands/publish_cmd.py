from __future__ import annotations

from pathlib import Path

import typer

from wprel.cli.commands._helpers import exit_on_error, require_repository
from wprel.cli.context import build_context
from wprel.services.gh import ensure_gh_auth, ensure_gh_available
from wprel.services.publish import publish_release


def publish(
    tag: str = typer.Option(..., "--tag", help="Release tag"),
    artifact: Path = typer.Option(..., "--artifact", help="Zip to attach"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the publish plan only"),
) -> None:
    """Create or update the GitHub release for a tag and attach the zip."""
    ctx = build_context()
    repo = require_repository(ctx)

    if not dry_run:
        exit_on_error(ensure_gh_available(), ctx)
        exit_on_error(ensure_gh_auth(workspace_root=ctx.project.root), ctx)

    result = exit_on_error(
        publish_release(
            workspace_root=ctx.project.root,
            repo=repo,
            tag=tag,
            artifact=artifact.expanduser().resolve(),
            console=ctx.console,
            dry_run=dry_run,
        ),
        ctx,
    )
    ctx.console.success(f"{result.action} release {result.tag} ({result.asset})")
