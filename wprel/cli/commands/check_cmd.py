from __future__ import annotations

from wprel.cli.commands._helpers import exit_on_error
from wprel.cli.context import build_context
from wprel.services.plugin_check import run_plugin_check


def check() -> None:
    """Run the WordPress plugin check against the plugin tree."""
    ctx = build_context()
    report = exit_on_error(
        run_plugin_check(
            root=ctx.project.root,
            config=ctx.project.config.check,
            console=ctx.console,
        ),
        ctx,
    )
    ctx.console.success(f"plugin check passed ({len(report.warnings)} warning(s))")
