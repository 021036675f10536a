from __future__ import annotations

import typer

from wprel.cli.commands._helpers import exit_on_error, resolve_ref
from wprel.cli.context import build_context
from wprel.services.ref import export_release_version


def version(
    ref: str | None = typer.Option(None, "--ref", help="Git ref (default: $GITHUB_REF)"),
) -> None:
    """Print RELEASE_VERSION for a ref and export it to $GITHUB_ENV."""
    ctx = build_context()
    release_ref = exit_on_error(resolve_ref(ref=ref, tag=None), ctx)
    exit_on_error(
        export_release_version(version=release_ref.version, env_file=ctx.env_file),
        ctx,
    )
    typer.echo(release_ref.version)
