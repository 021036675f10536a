from __future__ import annotations

import os
from pathlib import Path

import typer

from wprel import __version__
from wprel.cli.commands.archive_cmd import archive
from wprel.cli.commands.bump_cmd import bump
from wprel.cli.commands.cache_cmd import cache_app
from wprel.cli.commands.check_cmd import check
from wprel.cli.commands.commit_cmd import commit
from wprel.cli.commands.prune_cmd import prune
from wprel.cli.commands.publish_cmd import publish
from wprel.cli.commands.run_cmd import run
from wprel.cli.commands.version_cmd import version
from wprel.core.errors import ErrorCode


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(run)
app.command()(version)
app.command()(prune)
app.command()(check)
app.command()(bump)
app.command()(commit)
app.command()(archive)
app.command()(publish)

# Sub-apps
app.add_typer(cache_app, name="cache")


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    show_version: bool = typer.Option(False, "--version", help="Show version and exit."),
    root: Path | None = typer.Option(
        None,
        "--root",
        help="Plugin root (default: $GITHUB_WORKSPACE or current directory)",
    ),
) -> None:
    if show_version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if root is not None:
        try:
            resolved = root.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --root: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        if not resolved.is_dir():
            typer.echo(f"error: --root '{resolved}' is not a directory", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        os.environ["WPREL_ROOT"] = str(resolved)


def main() -> None:
    app()
