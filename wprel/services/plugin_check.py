"""Run the WordPress plugin checker against the pruned tree.

The checker is opaque: we build its command line, parse its JSON report and
decide pass/fail. Any ERROR finding fails the release; warnings are only
reported.

Report format (`--format=json`), one block per file:

    FILE: includes/class-foo.php
    [{"line": 12, "column": 5, "type": "ERROR", "code": "...", "message": "..."}]
"""

from __future__ import annotations

import json
import shutil
from dataclasses import dataclass
from pathlib import Path

from wprel.core.config import CheckConfig
from wprel.core.errors import PipelineError
from wprel.core.result import Err, Ok, Result
from wprel.core.structured import as_obj_list, as_str_dict, get_int, get_str
from wprel.output.console import ConsoleProtocol, Style
from wprel.platform.process import run_capture
from wprel.services.model import CheckFinding
from wprel.services.timeouts import CHECK_TIMEOUT_SECONDS


@dataclass(frozen=True, slots=True)
class CheckReport:
    findings: tuple[CheckFinding, ...]

    @property
    def errors(self) -> tuple[CheckFinding, ...]:
        return tuple(f for f in self.findings if f.type == "ERROR")

    @property
    def warnings(self) -> tuple[CheckFinding, ...]:
        return tuple(f for f in self.findings if f.type == "WARNING")

    @property
    def passed(self) -> bool:
        return not self.errors


def build_check_command(*, root: Path, config: CheckConfig) -> list[str]:
    cmd = [*config.command, str(root)]
    if config.exclude_directories:
        cmd.append(f"--exclude-directories={','.join(config.exclude_directories)}")
    if config.ignore_codes:
        cmd.append(f"--ignore-codes={','.join(config.ignore_codes)}")
    cmd.append("--format=json")
    return cmd


def parse_check_output(text: str, *, ignore_codes: tuple[str, ...] = ()) -> list[CheckFinding]:
    """Parse checker output, dropping ignored codes and unparseable lines."""
    ignored = set(ignore_codes)
    findings: list[CheckFinding] = []
    current_file = ""

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if line.startswith("FILE:"):
            current_file = line.removeprefix("FILE:").strip()
            continue
        if not line.startswith("["):
            continue

        try:
            obj: object = json.loads(line)
        except json.JSONDecodeError:
            continue

        items = as_obj_list(obj)
        if items is None:
            continue

        for item in items:
            d = as_str_dict(item)
            if d is None:
                continue
            code = get_str(d, "code") or ""
            if code in ignored:
                continue
            kind = (get_str(d, "type") or "").upper()
            findings.append(
                CheckFinding(
                    file=current_file,
                    line=get_int(d, "line") or 0,
                    column=get_int(d, "column") or 0,
                    type="ERROR" if kind == "ERROR" else "WARNING",
                    code=code,
                    message=get_str(d, "message") or "",
                )
            )

    return findings


def run_plugin_check(
    *,
    root: Path,
    config: CheckConfig,
    console: ConsoleProtocol,
) -> Result[CheckReport, PipelineError]:
    if not config.command or shutil.which(config.command[0]) is None:
        name = config.command[0] if config.command else "(empty)"
        return Err(
            PipelineError(
                kind="checker_missing",
                message=f"{name}: missing",
                hint="Install WP-CLI with the plugin-check plugin, or set [check].command",
            )
        )

    cmd = build_check_command(root=root, config=config)
    console.print(" ".join(cmd), Style.DIM)

    result = run_capture(cmd, cwd=root, timeout=CHECK_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        e = result.error
        return Err(
            PipelineError(
                kind="check_failed",
                message="plugin check could not run",
                hint=e.stderr.strip() or None,
            )
        )

    out = result.value
    report = CheckReport(
        findings=tuple(parse_check_output(out.stdout, ignore_codes=config.ignore_codes))
    )

    for finding in report.findings:
        style = Style.ERROR if finding.type == "ERROR" else Style.WARNING
        console.print(finding.pretty(), style)

    if report.errors:
        return Err(
            PipelineError(
                kind="check_failed",
                message=f"plugin check reported {len(report.errors)} error(s)",
                hint=report.errors[0].pretty(),
            )
        )

    if out.returncode != 0:
        return Err(
            PipelineError(
                kind="check_failed",
                message=f"plugin check exited with {out.returncode}",
                hint=out.stderr.strip() or None,
            )
        )

    return Ok(report)
