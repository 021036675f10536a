from __future__ import annotations

import typer

from wprel.cli.commands._helpers import exit_on_error
from wprel.cli.context import build_context
from wprel.services.cache import entry_for, restore_cache, save_cache

cache_app = typer.Typer(add_completion=False, no_args_is_help=True)


@cache_app.command("key")
def key_cmd() -> None:
    """Print the cache key for the current lockfiles."""
    ctx = build_context()
    entry = entry_for(root=ctx.project.root, config=ctx.project.config.cache)
    typer.echo(entry.key)


@cache_app.command("save")
def save_cmd() -> None:
    """Store vendor/, node_modules/, ... under the current key."""
    ctx = build_context()
    entry = exit_on_error(
        save_cache(root=ctx.project.root, config=ctx.project.config.cache, console=ctx.console),
        ctx,
    )
    ctx.console.success(str(entry.path))


@cache_app.command("restore")
def restore_cmd(
    dry_run: bool = typer.Option(False, "--dry-run", help="Check presence only"),
) -> None:
    """Restore the cache for the current key; fail on a miss."""
    ctx = build_context()
    entry = exit_on_error(
        restore_cache(
            root=ctx.project.root,
            config=ctx.project.config.cache,
            console=ctx.console,
            dry_run=dry_run,
        ),
        ctx,
    )
    ctx.console.success(f"restored {entry.key}")
