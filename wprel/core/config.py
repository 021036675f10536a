"""Typed configuration loading and access.

This module provides dataclasses for the `wprel.toml` structure. Every key is
optional; a plugin that follows the usual layout needs no config file at all.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_str_list, get_table

__all__ = [
    "CONFIG_FILENAME",
    "CacheConfig",
    "CheckConfig",
    "Config",
    "ConfigError",
    "PluginConfig",
    "PruneConfig",
    "ReleaseConfig",
    "load_config",
    "load_config_or_default",
    "slug_to_class_name",
]

CONFIG_FILENAME = "wprel.toml"

# -----------------------------------------------------------------------------
# Defaults
# -----------------------------------------------------------------------------

DEFAULT_README = "README.txt"

DEFAULT_CACHE_PREFIX = "deps-prod"
DEFAULT_LOCKFILES = ("composer.lock", "package-lock.json")
DEFAULT_CACHE_PATHS = ("vendor", "vendor-prefixed", "node_modules", "dist")

DEFAULT_CHECK_COMMAND = ("wp", "plugin", "check")
DEFAULT_CHECK_EXCLUDE_DIRECTORIES = ("vendor-prefixed",)
DEFAULT_CHECK_IGNORE_CODES = (
    "WordPressVIPMinimum.Performance.WPQueryParams.SuppressFilters_suppress_filters",
)

DEFAULT_COMMIT_MESSAGE = "Update Version in WordPress specific files"
DEFAULT_SKIP_REPOSITORIES = ("JUVOJustin/wordpress-plugin-boilerplate",)


def slug_to_class_name(slug: str) -> str:
    """Map a plugin slug to its main class name.

    `multilingual-bridge` -> `Multilingual_Bridge`
    """
    parts = [p for p in slug.replace("_", "-").split("-") if p]
    return "_".join(p[:1].upper() + p[1:] for p in parts)


@dataclass(frozen=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class PluginConfig:
    """Plugin identity and the three files carrying its version.

    Paths are relative to the plugin root. Unset values are derived from the
    slug (see `resolve`).
    """

    slug: str | None = None
    main_file: str | None = None
    version_file: str | None = None
    readme: str = DEFAULT_README

    def resolve(self, *, default_slug: str) -> "PluginConfig":
        slug = self.slug or default_slug
        return PluginConfig(
            slug=slug,
            main_file=self.main_file or f"{slug}.php",
            version_file=self.version_file or f"src/{slug_to_class_name(slug)}.php",
            readme=self.readme,
        )


@dataclass(frozen=True, slots=True)
class CacheConfig:
    """Dependency cache location and key inputs."""

    dir: str | None = None
    prefix: str = DEFAULT_CACHE_PREFIX
    lockfiles: tuple[str, ...] = DEFAULT_LOCKFILES
    paths: tuple[str, ...] = DEFAULT_CACHE_PATHS


@dataclass(frozen=True, slots=True)
class CheckConfig:
    """External plugin-check invocation."""

    command: tuple[str, ...] = DEFAULT_CHECK_COMMAND
    exclude_directories: tuple[str, ...] = DEFAULT_CHECK_EXCLUDE_DIRECTORIES
    ignore_codes: tuple[str, ...] = DEFAULT_CHECK_IGNORE_CODES


@dataclass(frozen=True, slots=True)
class PruneConfig:
    """Additional prune patterns on top of the built-in rules."""

    extra_root: tuple[str, ...] = ()
    extra_anywhere: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Commit-back and publication settings."""

    repository: str | None = None
    branch: str | None = None
    commit_message: str = DEFAULT_COMMIT_MESSAGE
    skip_repositories: tuple[str, ...] = DEFAULT_SKIP_REPOSITORIES


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    plugin: PluginConfig = field(default_factory=PluginConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    check: CheckConfig = field(default_factory=CheckConfig)
    prune: PruneConfig = field(default_factory=PruneConfig)
    release: ReleaseConfig = field(default_factory=ReleaseConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        plugin: StrDict = get_table(data, "plugin") or {}
        cache: StrDict = get_table(data, "cache") or {}
        check: StrDict = get_table(data, "check") or {}
        prune: StrDict = get_table(data, "prune") or {}
        release: StrDict = get_table(data, "release") or {}

        skip = get_str_list(release, "skip_repositories")

        return cls(
            plugin=PluginConfig(
                slug=get_str(plugin, "slug"),
                main_file=get_str(plugin, "main_file"),
                version_file=get_str(plugin, "version_file"),
                readme=get_str(plugin, "readme") or DEFAULT_README,
            ),
            cache=CacheConfig(
                dir=get_str(cache, "dir"),
                prefix=get_str(cache, "prefix") or DEFAULT_CACHE_PREFIX,
                lockfiles=get_str_list(cache, "lockfiles") or DEFAULT_LOCKFILES,
                paths=get_str_list(cache, "paths") or DEFAULT_CACHE_PATHS,
            ),
            check=CheckConfig(
                command=get_str_list(check, "command") or DEFAULT_CHECK_COMMAND,
                exclude_directories=_list_or_default(
                    check, "exclude_directories", DEFAULT_CHECK_EXCLUDE_DIRECTORIES
                ),
                ignore_codes=_list_or_default(check, "ignore_codes", DEFAULT_CHECK_IGNORE_CODES),
            ),
            prune=PruneConfig(
                extra_root=get_str_list(prune, "extra_root") or (),
                extra_anywhere=get_str_list(prune, "extra_anywhere") or (),
            ),
            release=ReleaseConfig(
                repository=get_str(release, "repository"),
                branch=get_str(release, "branch"),
                commit_message=get_str(release, "commit_message") or DEFAULT_COMMIT_MESSAGE,
                skip_repositories=DEFAULT_SKIP_REPOSITORIES if skip is None else skip,
            ),
        )


def _list_or_default(
    table: Mapping[str, object], key: str, default: tuple[str, ...]
) -> tuple[str, ...]:
    # An explicit empty list disables the default.
    value = get_str_list(table, key)
    return default if value is None else value


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to wprel.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Load config if the file exists, else return defaults.

    A present but broken file is still an error.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
