from __future__ import annotations

import typer

from wprel.cli.commands._helpers import exit_on_error
from wprel.cli.context import build_context
from wprel.services.version import apply_version


def bump(
    version: str = typer.Option(..., "--version", help="Version string to write"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report matches without writing"),
) -> None:
    """Write the version into the plugin header, version constant and readme."""
    ctx = build_context()
    version_file, main_file, readme = ctx.project.version_targets()
    updates = exit_on_error(
        apply_version(
            version_file=version_file,
            main_file=main_file,
            readme=readme,
            version=version,
            console=ctx.console,
            dry_run=dry_run,
        ),
        ctx,
    )
    matched = sum(1 for u in updates if u.matched)
    ctx.console.success(f"{matched}/{len(updates)} file(s) updated to {version}")
