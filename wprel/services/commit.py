"""Commit the version-bumped files back to the default branch.

Uses the GitHub git-data API (blob-less tree with inline content, commit,
ref update) so the commit is authored by the token's identity and the
checkout itself needs no push credentials. Files already identical on the
branch are skipped; nothing changed means no commit.

The ref update is not forced: if another run moved the branch in between,
GitHub rejects it and the stage fails. There is no rollback.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from wprel.core.errors import PipelineError
from wprel.core.result import Err, Ok, Result
from wprel.core.structured import as_str_dict, get_str, get_table
from wprel.output.console import ConsoleProtocol, Style
from wprel.services.gh import (
    get_repo_file_text,
    gh_api_json,
    gh_api_write,
    repo_default_branch,
)


@dataclass(frozen=True, slots=True)
class CommitResult:
    sha: str
    branch: str
    paths: tuple[str, ...]


def _err(message: str, hint: str | None = None) -> Err[PipelineError]:
    return Err(PipelineError(kind="commit_failed", message=message, hint=hint))


def _changed_files(
    *,
    workspace_root: Path,
    repo: str,
    branch: str,
    files: list[Path],
) -> Result[list[tuple[str, str]], PipelineError]:
    changed: list[tuple[str, str]] = []
    for path in files:
        rel = path.relative_to(workspace_root).as_posix()
        try:
            local = path.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            return _err(f"failed to read {rel}: {e}", str(path))

        remote = get_repo_file_text(workspace_root=workspace_root, repo=repo, path=rel, ref=branch)
        if isinstance(remote, Err):
            return remote
        if remote.value == local:
            continue
        changed.append((rel, local))
    return Ok(changed)


def _head_commit(
    *, workspace_root: Path, repo: str, branch: str
) -> Result[tuple[str, str], PipelineError]:
    """(head commit sha, its tree sha)"""
    ref = gh_api_json(
        workspace_root=workspace_root,
        endpoint=f"repos/{repo}/git/ref/heads/{branch}",
        kind="commit_failed",
    )
    if isinstance(ref, Err):
        return ref

    ref_data = as_str_dict(ref.value)
    obj = get_table(ref_data, "object") if ref_data is not None else None
    head = get_str(obj, "sha") if obj is not None else None
    if head is None:
        return _err(f"unexpected ref payload: {repo}@{branch}")

    commit = gh_api_json(
        workspace_root=workspace_root,
        endpoint=f"repos/{repo}/git/commits/{head}",
        kind="commit_failed",
    )
    if isinstance(commit, Err):
        return commit

    commit_data = as_str_dict(commit.value)
    tree = get_table(commit_data, "tree") if commit_data is not None else None
    tree_sha = get_str(tree, "sha") if tree is not None else None
    if tree_sha is None:
        return _err(f"unexpected commit payload: {repo}@{head}")

    return Ok((head, tree_sha))


def commit_files(
    *,
    workspace_root: Path,
    repo: str,
    branch: str | None,
    files: list[Path],
    message: str,
    console: ConsoleProtocol,
    dry_run: bool = False,
) -> Result[CommitResult | None, PipelineError]:
    """Commit files (absolute paths under workspace_root) in one commit.

    Returns Ok(None) when there was nothing to commit (or in dry-run).
    """
    rels = [p.relative_to(workspace_root).as_posix() for p in files]
    console.print(f"commit to {repo}: {', '.join(rels)}", Style.DIM)
    console.print(f"message: {message}", Style.DIM)
    if dry_run:
        return Ok(None)

    target = branch
    if target is None:
        default = repo_default_branch(workspace_root=workspace_root, repo=repo)
        if isinstance(default, Err):
            return default
        target = default.value

    changed = _changed_files(workspace_root=workspace_root, repo=repo, branch=target, files=files)
    if isinstance(changed, Err):
        return changed
    if not changed.value:
        console.info(f"{target} already up to date, nothing to commit")
        return Ok(None)

    head = _head_commit(workspace_root=workspace_root, repo=repo, branch=target)
    if isinstance(head, Err):
        return head
    head_sha, base_tree = head.value

    tree = gh_api_write(
        workspace_root=workspace_root,
        method="POST",
        endpoint=f"repos/{repo}/git/trees",
        payload={
            "base_tree": base_tree,
            "tree": [
                {"path": rel, "mode": "100644", "type": "blob", "content": content}
                for rel, content in changed.value
            ],
        },
        kind="commit_failed",
    )
    if isinstance(tree, Err):
        return tree
    tree_sha = get_str(tree.value, "sha")
    if tree_sha is None:
        return _err("missing sha in tree response")

    commit = gh_api_write(
        workspace_root=workspace_root,
        method="POST",
        endpoint=f"repos/{repo}/git/commits",
        payload={"message": message, "tree": tree_sha, "parents": [head_sha]},
        kind="commit_failed",
    )
    if isinstance(commit, Err):
        return commit
    commit_sha = get_str(commit.value, "sha")
    if commit_sha is None:
        return _err("missing sha in commit response")

    update = gh_api_write(
        workspace_root=workspace_root,
        method="PATCH",
        endpoint=f"repos/{repo}/git/refs/heads/{target}",
        payload={"sha": commit_sha, "force": False},
        kind="commit_failed",
    )
    if isinstance(update, Err):
        return update

    return Ok(
        CommitResult(
            sha=commit_sha,
            branch=target,
            paths=tuple(rel for rel, _ in changed.value),
        )
    )
