from __future__ import annotations

import base64
import binascii
import json
import shutil
from pathlib import Path
from time import sleep

from wprel.core.errors import PipelineError, PipelineErrorKind
from wprel.core.result import Err, Ok, Result
from wprel.core.structured import as_obj_list, as_str_dict, get_str
from wprel.platform.process import ProcessError
from wprel.platform.process import run as run_process
from wprel.services.model import GhRelease
from wprel.services.timeouts import (
    GH_READ_RETRY_ATTEMPTS,
    GH_READ_RETRY_DELAY_SECONDS,
    GH_TIMEOUT_SECONDS,
)


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "tls handshake timeout",
        "network is unreachable",
        "http 429",
        "http 500",
        "http 502",
        "http 503",
        "http 504",
    )
    if error.returncode == -1 and "timed out" in text:
        return True
    return any(marker in text for marker in markers)


def _is_not_found(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    return "http 404" in text or "release not found" in text or "not found (http" in text


def run_gh_read(
    *,
    workspace_root: Path,
    cmd: list[str],
    kind: PipelineErrorKind,
    message: str,
    hint: str | None = None,
    timeout: float = GH_TIMEOUT_SECONDS,
    retry_attempts: int = GH_READ_RETRY_ATTEMPTS,
    allow_not_found: bool = False,
) -> Result[str | None, PipelineError]:
    """Run an idempotent gh read, retrying transient failures.

    With `allow_not_found`, a 404 is Ok(None) instead of an error.
    """
    attempts = max(1, retry_attempts)
    for attempt in range(attempts):
        result = run_process(cmd, cwd=workspace_root, timeout=timeout)
        if isinstance(result, Ok):
            return Ok(result.value)

        error = result.error
        if allow_not_found and _is_not_found(error):
            return Ok(None)
        if attempt < attempts - 1 and _is_transient_gh_error(error):
            sleep(GH_READ_RETRY_DELAY_SECONDS * (attempt + 1))
            continue

        return Err(
            PipelineError(
                kind=kind,
                message=message,
                hint=error.stderr.strip() or hint,
            )
        )

    return Err(PipelineError(kind=kind, message=message, hint=hint))


def ensure_gh_available() -> Result[None, PipelineError]:
    if shutil.which("gh") is None:
        return Err(
            PipelineError(
                kind="gh_missing",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


def ensure_gh_auth(*, workspace_root: Path) -> Result[None, PipelineError]:
    result = run_process(["gh", "auth", "status"], cwd=workspace_root, timeout=GH_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return Err(
            PipelineError(
                kind="gh_auth_required",
                message="gh auth required",
                hint="Set GH_TOKEN in the job environment, or run: gh auth login",
            )
        )
    return Ok(None)


def _decode_json(text: str, *, kind: PipelineErrorKind, hint: str) -> Result[object, PipelineError]:
    try:
        obj: object = json.loads(text)
    except json.JSONDecodeError as e:
        return Err(PipelineError(kind=kind, message=f"gh returned invalid JSON: {e}", hint=hint))
    return Ok(obj)


def gh_api_json(
    *, workspace_root: Path, endpoint: str, kind: PipelineErrorKind = "invalid_input"
) -> Result[object, PipelineError]:
    result = run_gh_read(
        workspace_root=workspace_root,
        cmd=["gh", "api", endpoint],
        kind=kind,
        message=f"gh api failed: {endpoint}",
        hint=endpoint,
    )
    if isinstance(result, Err):
        return result
    return _decode_json(result.value or "", kind=kind, hint=endpoint)


def gh_api_write(
    *,
    workspace_root: Path,
    method: str,
    endpoint: str,
    payload: dict[str, object],
    kind: PipelineErrorKind,
) -> Result[dict[str, object], PipelineError]:
    """Send a JSON body to the GitHub API. Writes are never retried."""
    result = run_process(
        ["gh", "api", "--method", method, endpoint, "--input", "-"],
        cwd=workspace_root,
        timeout=GH_TIMEOUT_SECONDS,
        input_text=json.dumps(payload),
    )
    if isinstance(result, Err):
        e = result.error
        return Err(
            PipelineError(
                kind=kind,
                message=f"gh api {method} failed: {endpoint}",
                hint=e.stderr.strip() or None,
            )
        )

    obj = _decode_json(result.value, kind=kind, hint=endpoint)
    if isinstance(obj, Err):
        return obj
    data = as_str_dict(obj.value)
    if data is None:
        return Err(PipelineError(kind=kind, message=f"unexpected payload: {endpoint}"))
    return Ok(data)


def repo_default_branch(*, workspace_root: Path, repo: str) -> Result[str, PipelineError]:
    obj = gh_api_json(workspace_root=workspace_root, endpoint=f"repos/{repo}")
    if isinstance(obj, Err):
        return obj

    data = as_str_dict(obj.value)
    branch = get_str(data, "default_branch") if data is not None else None
    if branch is None:
        return Err(
            PipelineError(
                kind="invalid_input",
                message=f"missing default_branch: {repo}",
            )
        )
    return Ok(branch)


def get_repo_file_text(
    *,
    workspace_root: Path,
    repo: str,
    path: str,
    ref: str,
) -> Result[str | None, PipelineError]:
    """Read a file from a branch via the Contents API.

    Ok(None) when the file does not exist on that ref.
    """
    endpoint = f"repos/{repo}/contents/{path}?ref={ref}"
    result = run_gh_read(
        workspace_root=workspace_root,
        cmd=["gh", "api", endpoint],
        kind="commit_failed",
        message=f"gh api failed: {endpoint}",
        hint=endpoint,
        allow_not_found=True,
    )
    if isinstance(result, Err):
        return result
    if result.value is None:
        return Ok(None)

    obj = _decode_json(result.value, kind="commit_failed", hint=endpoint)
    if isinstance(obj, Err):
        return obj

    data = as_str_dict(obj.value)
    if data is None:
        return Err(
            PipelineError(
                kind="commit_failed",
                message=f"unexpected contents payload: {repo}/{path}",
                hint=endpoint,
            )
        )

    enc = get_str(data, "encoding")
    content = data.get("content")
    if enc != "base64" or not isinstance(content, str):
        return Err(
            PipelineError(
                kind="commit_failed",
                message=f"unexpected contents encoding for {repo}/{path}",
                hint=endpoint,
            )
        )

    try:
        raw = base64.b64decode(content, validate=False)
        return Ok(raw.decode("utf-8"))
    except (binascii.Error, ValueError) as e:
        return Err(
            PipelineError(
                kind="commit_failed",
                message=f"failed to decode contents: {e}",
                hint=endpoint,
            )
        )


def view_release(
    *, workspace_root: Path, repo: str, tag: str
) -> Result[GhRelease | None, PipelineError]:
    """Look up a release by tag. Ok(None) if there is none yet."""
    result = run_gh_read(
        workspace_root=workspace_root,
        cmd=["gh", "release", "view", tag, "--repo", repo, "--json", "tagName,assets"],
        kind="publish_failed",
        message=f"failed to query release {tag}",
        hint=repo,
        allow_not_found=True,
    )
    if isinstance(result, Err):
        return result
    if result.value is None:
        return Ok(None)

    obj = _decode_json(result.value, kind="publish_failed", hint=repo)
    if isinstance(obj, Err):
        return obj

    data = as_str_dict(obj.value)
    if data is None:
        return Err(PipelineError(kind="publish_failed", message="unexpected gh release payload"))

    names: list[str] = []
    for item in as_obj_list(data.get("assets")) or []:
        asset = as_str_dict(item)
        name = get_str(asset, "name") if asset is not None else None
        if name is not None:
            names.append(name)

    return Ok(
        GhRelease(
            tag=get_str(data, "tagName") or tag,
            asset_names=tuple(names),
        )
    )
