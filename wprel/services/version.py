"""Rewrite the plugin version in its three WordPress-specific files.

Each file is matched against a fixed literal pattern. A file where the
pattern no longer matches is left untouched and reported with zero
substitutions; this is a warning, not an error.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from wprel.core.errors import PipelineError
from wprel.core.result import Err, Ok, Result
from wprel.output.console import ConsoleProtocol, Style
from wprel.platform.files import atomic_write_text
from wprel.services.model import VersionUpdate


@dataclass(frozen=True, slots=True)
class VersionRule:
    """Replace whatever sits between the `head` and optional `tail` groups."""

    name: str
    pattern: re.Pattern[str]

    def apply_line(self, line: str, version: str) -> tuple[str, int]:
        # First match per line only; a callable keeps backslashes in the
        # version literal.
        return self.pattern.subn(
            lambda m: m.group("head") + version + (m.groupdict().get("tail") or ""),
            line,
            count=1,
        )


PLUGIN_VERSION_RULE = VersionRule(
    name="PLUGIN_VERSION constant",
    pattern=re.compile(r"(?P<head>const PLUGIN_VERSION = ')[^']*(?P<tail>';)"),
)
HEADER_VERSION_RULE = VersionRule(
    name="plugin header Version",
    pattern=re.compile(r"(?P<head>[ \t]*\*[ \t]*Version:[ \t]*)[^\r]*"),
)
STABLE_TAG_RULE = VersionRule(
    name="readme Stable tag",
    pattern=re.compile(r"(?P<head>Stable tag: )[^\r]*"),
)


def _split_ending(line: str) -> tuple[str, str]:
    if line.endswith("\r\n"):
        return line[:-2], "\r\n"
    if line.endswith("\n"):
        return line[:-1], "\n"
    return line, ""


def _lines(text: str) -> list[str]:
    # Only "\n" ends a line, as for sed.
    parts = text.split("\n")
    lines = [p + "\n" for p in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def substitute(text: str, *, rule: VersionRule, version: str) -> tuple[str, int]:
    """Apply rule to every line of text, preserving line endings."""
    out: list[str] = []
    total = 0
    for line in _lines(text):
        body, ending = _split_ending(line)
        new_body, n = rule.apply_line(body, version)
        total += n
        out.append(new_body + ending)
    return "".join(out), total


def update_file(
    *, path: Path, rule: VersionRule, version: str, dry_run: bool = False
) -> Result[VersionUpdate, PipelineError]:
    try:
        text = path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return Err(
            PipelineError(
                kind="version_failed",
                message=f"failed to read {path.name}: {e}",
                hint=str(path),
            )
        )

    new_text, count = substitute(text, rule=rule, version=version)
    if new_text != text and not dry_run:
        try:
            atomic_write_text(path, new_text)
        except OSError as e:
            return Err(
                PipelineError(
                    kind="version_failed",
                    message=f"failed to write {path.name}: {e}",
                    hint=str(path),
                )
            )

    return Ok(VersionUpdate(path=path, substitutions=count))


def apply_version(
    *,
    version_file: Path,
    main_file: Path,
    readme: Path,
    version: str,
    console: ConsoleProtocol,
    dry_run: bool = False,
) -> Result[list[VersionUpdate], PipelineError]:
    updates: list[VersionUpdate] = []
    for path, rule in (
        (version_file, PLUGIN_VERSION_RULE),
        (main_file, HEADER_VERSION_RULE),
        (readme, STABLE_TAG_RULE),
    ):
        result = update_file(path=path, rule=rule, version=version, dry_run=dry_run)
        if isinstance(result, Err):
            return result

        update = result.value
        if update.matched:
            console.print(f"{path.name}: {rule.name} -> {version}", Style.DIM)
        else:
            console.warning(f"{path.name}: {rule.name} not found, file left unchanged")
        updates.append(update)

    return Ok(updates)
