"""Create or update the GitHub release for a tag.

Idempotent by tag: a second run for the same tag re-uploads the artifact
(replacing the same-named asset) and leaves the existing title and body
alone.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from wprel.core.errors import PipelineError
from wprel.core.result import Err, Ok, Result
from wprel.output.console import ConsoleProtocol, Style
from wprel.platform.process import run as run_process
from wprel.services.gh import view_release
from wprel.services.timeouts import GH_UPLOAD_TIMEOUT_SECONDS

PublishAction = Literal["created", "updated", "dry-run"]


@dataclass(frozen=True, slots=True)
class PublishResult:
    tag: str
    action: PublishAction
    asset: str


def _upload_asset(
    *, workspace_root: Path, repo: str, tag: str, artifact: Path, console: ConsoleProtocol
) -> Result[None, PipelineError]:
    cmd = ["gh", "release", "upload", tag, str(artifact), "--repo", repo, "--clobber"]
    console.print(" ".join(cmd[:4]) + " ... --clobber", Style.DIM)
    result = run_process(cmd, cwd=workspace_root, timeout=GH_UPLOAD_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return Err(
            PipelineError(
                kind="publish_failed",
                message=f"failed to upload {artifact.name} to {tag}",
                hint=result.error.stderr.strip() or None,
            )
        )
    return Ok(None)


def _create_release(
    *, workspace_root: Path, repo: str, tag: str, artifact: Path, console: ConsoleProtocol
) -> Result[bool, PipelineError]:
    """Create the release. Ok(False) if another run created it first."""
    cmd = [
        "gh",
        "release",
        "create",
        tag,
        str(artifact),
        "--repo",
        repo,
        "--title",
        tag,
        "--notes",
        "",
        "--verify-tag",
    ]
    console.print(" ".join(cmd[:4]) + " ...", Style.DIM)
    result = run_process(cmd, cwd=workspace_root, timeout=GH_UPLOAD_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        stderr = result.error.stderr.strip()
        if "already exists" in stderr.lower():
            return Ok(False)
        return Err(
            PipelineError(
                kind="publish_failed",
                message=f"failed to create release {tag}",
                hint=stderr or None,
            )
        )
    return Ok(True)


def publish_release(
    *,
    workspace_root: Path,
    repo: str,
    tag: str,
    artifact: Path,
    console: ConsoleProtocol,
    dry_run: bool = False,
) -> Result[PublishResult, PipelineError]:
    if not artifact.is_file():
        return Err(
            PipelineError(
                kind="publish_failed",
                message=f"artifact not found: {artifact}",
                hint="Run the archive stage first",
            )
        )

    if dry_run:
        console.print(f"publish {artifact.name} to {repo}@{tag}", Style.DIM)
        return Ok(PublishResult(tag=tag, action="dry-run", asset=artifact.name))

    existing = view_release(workspace_root=workspace_root, repo=repo, tag=tag)
    if isinstance(existing, Err):
        return existing

    if existing.value is None:
        created = _create_release(
            workspace_root=workspace_root, repo=repo, tag=tag, artifact=artifact, console=console
        )
        if isinstance(created, Err):
            return created
        if created.value:
            return Ok(PublishResult(tag=tag, action="created", asset=artifact.name))
        console.info(f"release {tag} appeared concurrently, updating instead")
    elif artifact.name in existing.value.asset_names:
        console.info(f"replacing existing asset {artifact.name} on {tag}")
    else:
        console.info(f"adding asset {artifact.name} to {tag}")

    uploaded = _upload_asset(
        workspace_root=workspace_root, repo=repo, tag=tag, artifact=artifact, console=console
    )
    if isinstance(uploaded, Err):
        return uploaded
    return Ok(PublishResult(tag=tag, action="updated", asset=artifact.name))
