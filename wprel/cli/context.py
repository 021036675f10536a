from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from wprel.core.config import CONFIG_FILENAME, load_config_or_default
from wprel.core.errors import ErrorCode
from wprel.core.project import PluginProject, detect_project
from wprel.core.result import Err
from wprel.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    project: PluginProject
    console: ConsoleProtocol

    @property
    def repository(self) -> str | None:
        """Target repository: config first, then the CI environment."""
        return self.project.config.release.repository or os.environ.get("GITHUB_REPOSITORY")

    @property
    def env_file(self) -> Path | None:
        value = os.environ.get("GITHUB_ENV")
        return Path(value) if value else None


def build_context() -> CLIContext:
    root_result = detect_project()
    if isinstance(root_result, Err):
        typer.echo(f"error: {root_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    root = root_result.value
    config_result = load_config_or_default(root / CONFIG_FILENAME)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    return CLIContext(
        project=PluginProject(root=root, config=config_result.value),
        console=RichConsole(),
    )
