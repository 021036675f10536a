from __future__ import annotations

from pathlib import Path

import typer

from wprel.cli.commands._helpers import exit_on_error
from wprel.cli.context import build_context
from wprel.services.archive import build_artifact


def archive(
    version: str = typer.Option(..., "--version", help="Release version used in the zip name"),
    out: Path | None = typer.Option(
        None, "--out", help="Output directory (default: parent of the plugin root)"
    ),
) -> None:
    """Zip the plugin tree into <slug>-<version>.zip."""
    ctx = build_context()
    artifact = exit_on_error(
        build_artifact(
            archive_dir=ctx.project.archive_dir,
            slug=ctx.project.slug,
            version=version,
            console=ctx.console,
            out_dir=out,
        ),
        ctx,
    )
    ctx.console.success(f"{artifact.path} sha256={artifact.sha256}")
