"""Plugin project detection and paths.

The project root is the checked-out plugin repository. In CI it is
`$GITHUB_WORKSPACE`; locally it defaults to the current directory.

Resolution order:
1. explicit path (`--root`)
2. WPREL_ROOT environment variable
3. GITHUB_WORKSPACE environment variable
4. current working directory
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .config import CONFIG_FILENAME, Config, PluginConfig
from .result import Err, Ok, Result

__all__ = [
    "PluginProject",
    "ProjectError",
    "detect_project",
]


@dataclass(frozen=True)
class ProjectError:
    """Error when the plugin root cannot be resolved."""

    message: str
    searched_from: Path | None = None


@dataclass(frozen=True, slots=True)
class PluginProject:
    """A plugin checkout plus its resolved configuration."""

    root: Path
    config: Config

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILENAME

    @property
    def plugin(self) -> PluginConfig:
        """Plugin settings with slug-derived defaults filled in."""
        return self.config.plugin.resolve(default_slug=self.root.name)

    @property
    def slug(self) -> str:
        return self.plugin.slug or self.root.name

    @property
    def archive_dir(self) -> Path:
        """Directory that is zipped into the release artifact.

        The whole parent of the checkout, so the zip contains the plugin
        folder itself.
        """
        return self.root.parent

    def version_targets(self) -> tuple[Path, Path, Path]:
        """(version file, main plugin file, readme), absolute."""
        plugin = self.plugin
        assert plugin.version_file is not None and plugin.main_file is not None
        return (
            self.root / plugin.version_file,
            self.root / plugin.main_file,
            self.root / plugin.readme,
        )


def _candidate_root(explicit: Path | None) -> Path:
    if explicit is not None:
        return explicit
    for var in ("WPREL_ROOT", "GITHUB_WORKSPACE"):
        value = os.environ.get(var)
        if value:
            return Path(value)
    return Path.cwd()


def detect_project(explicit: Path | None = None) -> Result[Path, ProjectError]:
    """Resolve the plugin root directory."""
    candidate = _candidate_root(explicit)
    try:
        root = candidate.expanduser().resolve()
    except OSError as e:
        return Err(ProjectError(f"invalid plugin root: {e}", searched_from=candidate))

    if not root.is_dir():
        return Err(ProjectError(f"plugin root is not a directory: {root}", searched_from=root))
    return Ok(root)
