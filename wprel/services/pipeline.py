"""Release pipeline orchestration.

Stages run strictly in order and the first failure aborts everything after
it. Nothing is retried or rolled back: a version commit already pushed stays
pushed, a half-written zip stays on disk. The next tag push is the recovery
path.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from wprel.core.errors import PipelineError
from wprel.core.project import PluginProject
from wprel.core.result import Err, Ok, Result
from wprel.output.console import ConsoleProtocol
from wprel.services.archive import build_artifact
from wprel.services.cache import restore_cache
from wprel.services.commit import commit_files
from wprel.services.gh import ensure_gh_auth, ensure_gh_available
from wprel.services.model import ReleaseArtifact, ReleaseRef
from wprel.services.plugin_check import run_plugin_check
from wprel.services.prune import prune_tree
from wprel.services.publish import publish_release
from wprel.services.ref import export_release_version
from wprel.services.version import apply_version


@dataclass(frozen=True, slots=True)
class PipelineRequest:
    project: PluginProject
    ref: ReleaseRef
    repository: str | None
    env_file: Path | None
    dry_run: bool = False


@dataclass
class PipelineState:
    """Mutable scratch space shared between stages of one run."""

    artifact: ReleaseArtifact | None = None


@dataclass
class PipelineReport:
    version: str
    completed: list[str] = field(default_factory=list)
    skipped: bool = False
    failed_stage: str | None = None
    error: PipelineError | None = None
    artifact: ReleaseArtifact | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


StageFn = Callable[[PipelineRequest, PipelineState, ConsoleProtocol], Result[str, PipelineError]]


@dataclass(frozen=True, slots=True)
class Stage:
    name: str
    run: StageFn


def _require_repository(request: PipelineRequest) -> Result[str, PipelineError]:
    if request.repository is None:
        return Err(
            PipelineError(
                kind="invalid_input",
                message="target repository unknown",
                hint="Set GITHUB_REPOSITORY or [release].repository",
            )
        )
    return Ok(request.repository)


def _require_gh(request: PipelineRequest) -> Result[None, PipelineError]:
    if request.dry_run:
        return Ok(None)
    available = ensure_gh_available()
    if isinstance(available, Err):
        return available
    return ensure_gh_auth(workspace_root=request.project.root)


def _stage_version(
    request: PipelineRequest, state: PipelineState, console: ConsoleProtocol
) -> Result[str, PipelineError]:
    version = request.ref.version
    exported = export_release_version(version=version, env_file=request.env_file)
    if isinstance(exported, Err):
        return exported
    suffix = " (exported to GITHUB_ENV)" if exported.value else ""
    return Ok(f"RELEASE_VERSION={version}{suffix}")


def _stage_cache(
    request: PipelineRequest, state: PipelineState, console: ConsoleProtocol
) -> Result[str, PipelineError]:
    project = request.project
    return restore_cache(
        root=project.root, config=project.config.cache, console=console, dry_run=request.dry_run
    ).map(lambda entry: f"restored {entry.key}")


def _stage_prune(
    request: PipelineRequest, state: PipelineState, console: ConsoleProtocol
) -> Result[str, PipelineError]:
    project = request.project
    return prune_tree(
        root=project.root, config=project.config.prune, console=console, dry_run=request.dry_run
    ).map(lambda report: f"removed {report.count} path(s)")


def _stage_check(
    request: PipelineRequest, state: PipelineState, console: ConsoleProtocol
) -> Result[str, PipelineError]:
    project = request.project
    return run_plugin_check(root=project.root, config=project.config.check, console=console).map(
        lambda report: f"passed ({len(report.warnings)} warning(s))"
    )


def _stage_bump(
    request: PipelineRequest, state: PipelineState, console: ConsoleProtocol
) -> Result[str, PipelineError]:
    version_file, main_file, readme = request.project.version_targets()
    return apply_version(
        version_file=version_file,
        main_file=main_file,
        readme=readme,
        version=request.ref.version,
        console=console,
        dry_run=request.dry_run,
    ).map(lambda updates: f"{sum(1 for u in updates if u.matched)}/{len(updates)} file(s) updated")


def _stage_commit(
    request: PipelineRequest, state: PipelineState, console: ConsoleProtocol
) -> Result[str, PipelineError]:
    repo = _require_repository(request)
    if isinstance(repo, Err):
        return repo
    gh = _require_gh(request)
    if isinstance(gh, Err):
        return gh

    project = request.project
    result = commit_files(
        workspace_root=project.root,
        repo=repo.value,
        branch=project.config.release.branch,
        files=list(project.version_targets()),
        message=project.config.release.commit_message,
        console=console,
        dry_run=request.dry_run,
    )
    if isinstance(result, Err):
        return result
    if result.value is None:
        return Ok("no commit")
    return Ok(f"{result.value.sha[:8]} on {result.value.branch}")


def _stage_archive(
    request: PipelineRequest, state: PipelineState, console: ConsoleProtocol
) -> Result[str, PipelineError]:
    project = request.project
    result = build_artifact(
        archive_dir=project.archive_dir,
        slug=project.slug,
        version=request.ref.version,
        console=console,
    )
    if isinstance(result, Err):
        return result
    state.artifact = result.value
    return Ok(f"{result.value.name} ({result.value.size} bytes, sha256 {result.value.sha256[:12]})")


def _stage_publish(
    request: PipelineRequest, state: PipelineState, console: ConsoleProtocol
) -> Result[str, PipelineError]:
    repo = _require_repository(request)
    if isinstance(repo, Err):
        return repo
    gh = _require_gh(request)
    if isinstance(gh, Err):
        return gh
    if state.artifact is None:
        return Err(PipelineError(kind="publish_failed", message="no artifact to publish"))

    return publish_release(
        workspace_root=request.project.root,
        repo=repo.value,
        tag=request.ref.version,
        artifact=state.artifact.path,
        console=console,
        dry_run=request.dry_run,
    ).map(lambda published: f"{published.action} release {published.tag}")


STAGES: tuple[Stage, ...] = (
    Stage("resolve version", _stage_version),
    Stage("restore cache", _stage_cache),
    Stage("prune development files", _stage_prune),
    Stage("plugin check", _stage_check),
    Stage("update version strings", _stage_bump),
    Stage("commit version files", _stage_commit),
    Stage("archive", _stage_archive),
    Stage("publish release", _stage_publish),
)


def run_pipeline(
    request: PipelineRequest,
    *,
    console: ConsoleProtocol,
    stages: tuple[Stage, ...] = STAGES,
) -> PipelineReport:
    report = PipelineReport(version=request.ref.version)

    skip = request.project.config.release.skip_repositories
    if request.repository is not None and request.repository in skip:
        console.info(f"repository {request.repository} is excluded from releases, skipping")
        report.skipped = True
        return report

    state = PipelineState()
    total = len(stages)
    for index, stage in enumerate(stages, start=1):
        console.header(f"[{index}/{total}] {stage.name}")
        result = stage.run(request, state, console)
        if isinstance(result, Err):
            report.failed_stage = stage.name
            report.error = result.error
            break
        console.success(result.value)
        report.completed.append(stage.name)

    report.artifact = state.artifact
    return report
