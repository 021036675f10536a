"""Subprocess execution with Result-based error handling.

Every external tool the pipeline drives (`gh`, `wp plugin check`) goes
through `run`, which captures output and returns a structured error instead
of raising.

Usage:
    result = run(["gh", "release", "view", "v1.2.3"], cwd=root)
    match result:
        case Ok(stdout):
            print(stdout)
        case Err(error):
            print(f"Failed: {error.stderr}")
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from wprel.core.result import Err, Ok, Result

__all__ = ["ProcessError", "ProcessOutput", "run", "run_capture"]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: The exit code of the process (-1 if it never ran).
        stdout: Standard output (may be empty).
        stderr: Standard error (contains error details).
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"


@dataclass(frozen=True, slots=True)
class ProcessOutput:
    """Output of a process that ran to completion, whatever its exit code."""

    returncode: int
    stdout: str
    stderr: str


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
    input_text: str | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return stdout or error.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Environment variables (uses current env if None).
        timeout: Maximum seconds to wait (None for no limit).
        input_text: Text fed to the process on stdin.

    Returns:
        Ok(stdout) on exit code 0, Err(ProcessError) otherwise.
    """
    result = run_capture(cmd, cwd, env, timeout=timeout, input_text=input_text)
    if isinstance(result, Err):
        return result

    out = result.value
    if out.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=out.returncode,
                stdout=out.stdout,
                stderr=out.stderr,
            )
        )
    return Ok(out.stdout)


def run_capture(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
    input_text: str | None = None,
) -> Result[ProcessOutput, ProcessError]:
    """Execute a command and return its output regardless of exit code.

    Use this for tools whose non-zero exit still carries a report on stdout.
    Only a process that could not be started or timed out is an Err.
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            input=input_text,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout=e.stdout if isinstance(e.stdout, str) else "",
                stderr=f"Command timed out after {timeout}s",
            )
        )
    except OSError as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout="",
                stderr=str(e),
            )
        )

    return Ok(ProcessOutput(returncode=proc.returncode, stdout=proc.stdout, stderr=proc.stderr))
