from __future__ import annotations

import typer

from wprel.cli.commands._helpers import exit_on_error
from wprel.cli.context import build_context
from wprel.services.prune import prune_tree


def prune(
    dry_run: bool = typer.Option(False, "--dry-run", help="List what would be removed"),
) -> None:
    """Remove development-only files from the plugin tree (destructive)."""
    ctx = build_context()
    report = exit_on_error(
        prune_tree(
            root=ctx.project.root,
            config=ctx.project.config.prune,
            console=ctx.console,
            dry_run=dry_run,
        ),
        ctx,
    )
    verb = "would remove" if report.dry_run else "removed"
    ctx.console.success(f"{verb} {report.count} path(s)")
