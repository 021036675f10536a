from __future__ import annotations

import typer

from wprel.cli.commands._helpers import exit_on_error, exit_with_code, resolve_ref
from wprel.cli.context import build_context
from wprel.output.console import Style
from wprel.output.errors import pipeline_error_exit_code, print_pipeline_error
from wprel.services.pipeline import PipelineRequest, run_pipeline
from wprel.services.ref import require_tag


def run(
    ref: str | None = typer.Option(None, "--ref", help="Git ref (default: $GITHUB_REF)"),
    tag: str | None = typer.Option(None, "--tag", help="Release tag (instead of --ref)"),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Print destructive and remote steps instead of running them"
    ),
) -> None:
    """Run the full release pipeline for a pushed tag."""
    ctx = build_context()
    release_ref = exit_on_error(resolve_ref(ref=ref, tag=tag).flat_map(require_tag), ctx)

    ctx.console.print(f"plugin: {ctx.project.slug} ({ctx.project.root})", Style.DIM)
    ctx.console.print(f"release: {release_ref.version}", Style.DIM)

    report = run_pipeline(
        PipelineRequest(
            project=ctx.project,
            ref=release_ref,
            repository=ctx.repository,
            env_file=ctx.env_file,
            dry_run=dry_run,
        ),
        console=ctx.console,
    )

    if report.error is not None:
        ctx.console.newline()
        ctx.console.print(f"stage failed: {report.failed_stage}", Style.BOLD)
        print_pipeline_error(report.error, ctx.console)
        exit_with_code(pipeline_error_exit_code(report.error))

    if not report.skipped:
        ctx.console.newline()
        ctx.console.success(f"released {report.version}")
