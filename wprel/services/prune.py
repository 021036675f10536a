"""Strip development-only files from the plugin tree.

Destructive and irreversible: meant for the ephemeral CI checkout that is
about to be zipped, never for a developer's working copy (use --dry-run).
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Literal

from wprel.core.config import CONFIG_FILENAME, PruneConfig
from wprel.core.errors import PipelineError
from wprel.core.result import Err, Ok, Result
from wprel.output.console import ConsoleProtocol, Style

PruneScope = Literal["root", "anywhere"]


@dataclass(frozen=True, slots=True)
class PruneRule:
    """Remove entries named `pattern`.

    `root` rules remove files or directories directly under the plugin root.
    `anywhere` rules remove files at any depth; with `keep_root` the match at
    the plugin root itself survives.
    """

    pattern: str
    scope: PruneScope
    keep_root: bool = False


@dataclass(frozen=True, slots=True)
class PruneReport:
    root: Path
    removed: tuple[str, ...]
    dry_run: bool

    @property
    def count(self) -> int:
        return len(self.removed)


DEFAULT_RULES: tuple[PruneRule, ...] = (
    # Dependency manifests: the root composer.json stays for the autoloader.
    PruneRule("composer.json", "anywhere", keep_root=True),
    PruneRule("composer.lock", "anywhere"),
    PruneRule("package.json", "anywhere"),
    PruneRule("package-lock.json", "anywhere"),
    PruneRule(".gitignore", "anywhere"),
    PruneRule("CLAUDE.md", "anywhere"),
    PruneRule("Agents.md", "anywhere"),
    # Tooling config
    PruneRule("phpunit.xml.dist", "root"),
    PruneRule("phpcs.xml", "root"),
    PruneRule("phpstan.neon", "root"),
    PruneRule("phpcs-report.xml", "root"),
    PruneRule("eslint.config.js", "root"),
    PruneRule("bud.config.js", "root"),
    PruneRule(".mcp.json", "root"),
    PruneRule(CONFIG_FILENAME, "root"),
    # Repository and development directories
    PruneRule(".git", "root"),
    PruneRule(".github", "root"),
    PruneRule("tests", "root"),
    PruneRule("bin", "root"),
    PruneRule("docs", "root"),
    PruneRule(".junie", "root"),
    PruneRule(".windsurfrules", "root"),
    PruneRule(".claude", "root"),
)


def build_rules(config: PruneConfig) -> tuple[PruneRule, ...]:
    extra = tuple(PruneRule(p, "root") for p in config.extra_root) + tuple(
        PruneRule(p, "anywhere") for p in config.extra_anywhere
    )
    return DEFAULT_RULES + extra


def plan_prune(*, root: Path, rules: tuple[PruneRule, ...]) -> list[Path]:
    """List paths the rules would remove, root-scoped entries first.

    Nothing below a root-scoped directory is listed separately.
    """
    root_rules = [r for r in rules if r.scope == "root"]
    anywhere_rules = [r for r in rules if r.scope == "anywhere"]

    targets: list[Path] = []
    for child in sorted(root.iterdir()):
        if any(fnmatchcase(child.name, r.pattern) for r in root_rules):
            targets.append(child)
    skipped = set(targets)

    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        dirnames[:] = sorted(d for d in dirnames if current / d not in skipped)
        for name in sorted(filenames):
            path = current / name
            if path in skipped:
                continue
            for rule in anywhere_rules:
                if not fnmatchcase(name, rule.pattern):
                    continue
                if rule.keep_root and current == root:
                    continue
                targets.append(path)
                break

    return targets


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink(missing_ok=True)


def prune_tree(
    *,
    root: Path,
    config: PruneConfig,
    console: ConsoleProtocol,
    dry_run: bool = False,
) -> Result[PruneReport, PipelineError]:
    rules = build_rules(config)
    try:
        targets = plan_prune(root=root, rules=rules)
    except OSError as e:
        return Err(PipelineError(kind="prune_failed", message=f"failed to scan tree: {e}"))

    removed: list[str] = []
    for path in targets:
        rel = path.relative_to(root).as_posix()
        console.print(f"rm {rel}", Style.DIM)
        if not dry_run:
            try:
                _remove(path)
            except OSError as e:
                return Err(
                    PipelineError(
                        kind="prune_failed",
                        message=f"failed to remove {rel}: {e}",
                        hint=str(path),
                    )
                )
        removed.append(rel)

    return Ok(PruneReport(root=root, removed=tuple(removed), dry_run=dry_run))
