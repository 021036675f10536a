from __future__ import annotations

import base64
import json
from pathlib import Path

import pytest

from wprel.core.result import Err, Ok, Result
from wprel.output.console import MockConsole
from wprel.platform.process import ProcessError
from wprel.services import gh as gh_mod
from wprel.services.commit import CommitResult, commit_files

REPO = "acme/plugin"


class FakeGitHub:
    """Answers the git-data API calls made by commit_files."""

    def __init__(self, remote: dict[str, str], *, default_branch: str = "main") -> None:
        self.remote = remote
        self.default_branch = default_branch
        self.calls: list[list[str]] = []
        self.bodies: dict[str, object] = {}
        self.fail_on: str | None = None

    def __call__(
        self,
        cmd: list[str],
        *,
        cwd: Path,
        timeout: float | None = None,
        input_text: str | None = None,
    ) -> Result[str, ProcessError]:
        del cwd, timeout
        self.calls.append(cmd)
        if "--method" in cmd:
            method = cmd[cmd.index("--method") + 1]
            endpoint = cmd[cmd.index("--method") + 2]
            key = f"{method} {endpoint}"
            self.bodies[key] = json.loads(input_text or "{}")
            if self.fail_on == key:
                return Err(ProcessError(tuple(cmd), 1, "", "HTTP 422 Update is not a fast forward"))
            return Ok(json.dumps(self._write(key)))
        return self._read(cmd, cmd[2])

    def _write(self, key: str) -> dict[str, object]:
        if key == f"POST repos/{REPO}/git/trees":
            return {"sha": "tree-new"}
        if key == f"POST repos/{REPO}/git/commits":
            return {"sha": "c0ffee1234567890"}
        return {"ref": f"refs/heads/{self.default_branch}"}

    def _read(self, cmd: list[str], endpoint: str) -> Result[str, ProcessError]:
        if endpoint == f"repos/{REPO}":
            return Ok(json.dumps({"default_branch": self.default_branch}))
        prefix = f"repos/{REPO}/contents/"
        if endpoint.startswith(prefix):
            path = endpoint.removeprefix(prefix).split("?ref=")[0]
            if path not in self.remote:
                return Err(ProcessError(tuple(cmd), 1, "", "gh: Not Found (HTTP 404)"))
            content = base64.b64encode(self.remote[path].encode()).decode()
            return Ok(json.dumps({"encoding": "base64", "content": content}))
        if endpoint.startswith(f"repos/{REPO}/git/ref/heads/"):
            return Ok(json.dumps({"object": {"sha": "head-sha"}}))
        if endpoint == f"repos/{REPO}/git/commits/head-sha":
            return Ok(json.dumps({"tree": {"sha": "tree-old"}}))
        raise AssertionError(f"unexpected call: {cmd}")


def _files(tmp_path: Path) -> list[Path]:
    files = {
        "src/Acme.php": "const PLUGIN_VERSION = '2.0.0';\n",
        "acme.php": " * Version: 2.0.0\n",
        "README.txt": "Stable tag: 2.0.0\n",
    }
    out: list[Path] = []
    for rel, text in files.items():
        path = tmp_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        out.append(path)
    return out


def _install(monkeypatch: pytest.MonkeyPatch, fake: FakeGitHub) -> None:
    monkeypatch.setattr(gh_mod, "run_process", fake)
    monkeypatch.setattr(gh_mod, "sleep", lambda seconds: None)


def test_commits_changed_files(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    files = _files(tmp_path)
    fake = FakeGitHub(
        {
            "src/Acme.php": "const PLUGIN_VERSION = '1.0.0';\n",
            "acme.php": " * Version: 2.0.0\n",
            "README.txt": "Stable tag: 1.0.0\n",
        }
    )
    _install(monkeypatch, fake)

    result = commit_files(
        workspace_root=tmp_path,
        repo=REPO,
        branch=None,
        files=files,
        message="Update Version in WordPress specific files",
        console=MockConsole(),
    )

    assert result == Ok(
        CommitResult(sha="c0ffee1234567890", branch="main", paths=("src/Acme.php", "README.txt"))
    )
    tree = fake.bodies[f"POST repos/{REPO}/git/trees"]
    assert tree == {
        "base_tree": "tree-old",
        "tree": [
            {
                "path": "src/Acme.php",
                "mode": "100644",
                "type": "blob",
                "content": "const PLUGIN_VERSION = '2.0.0';\n",
            },
            {
                "path": "README.txt",
                "mode": "100644",
                "type": "blob",
                "content": "Stable tag: 2.0.0\n",
            },
        ],
    }
    assert fake.bodies[f"POST repos/{REPO}/git/commits"] == {
        "message": "Update Version in WordPress specific files",
        "tree": "tree-new",
        "parents": ["head-sha"],
    }
    assert fake.bodies[f"PATCH repos/{REPO}/git/refs/heads/main"] == {
        "sha": "c0ffee1234567890",
        "force": False,
    }


def test_file_missing_on_branch_is_added(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    files = _files(tmp_path)
    fake = FakeGitHub({"acme.php": " * Version: 2.0.0\n", "README.txt": "Stable tag: 2.0.0\n"})
    _install(monkeypatch, fake)

    result = commit_files(
        workspace_root=tmp_path,
        repo=REPO,
        branch="main",
        files=files,
        message="m",
        console=MockConsole(),
    )
    assert isinstance(result, Ok)
    assert result.value is not None
    assert result.value.paths == ("src/Acme.php",)
    # Explicit branch: no default-branch lookup.
    assert ["gh", "api", f"repos/{REPO}"] not in fake.calls


def test_nothing_changed_makes_no_commit(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    files = _files(tmp_path)
    remote = {p.relative_to(tmp_path).as_posix(): p.read_text(encoding="utf-8") for p in files}
    fake = FakeGitHub(remote, default_branch="trunk")
    _install(monkeypatch, fake)
    console = MockConsole()

    result = commit_files(
        workspace_root=tmp_path,
        repo=REPO,
        branch=None,
        files=files,
        message="m",
        console=console,
    )
    assert result == Ok(None)
    assert not any("--method" in c for c in fake.calls)
    assert console.find("trunk already up to date")


def test_rejected_ref_update_fails(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    files = _files(tmp_path)
    fake = FakeGitHub({})
    fake.fail_on = f"PATCH repos/{REPO}/git/refs/heads/main"
    _install(monkeypatch, fake)

    result = commit_files(
        workspace_root=tmp_path,
        repo=REPO,
        branch="main",
        files=files,
        message="m",
        console=MockConsole(),
    )
    assert isinstance(result, Err)
    assert result.error.kind == "commit_failed"
    assert "fast forward" in (result.error.hint or "")


def test_dry_run_calls_nothing(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    files = _files(tmp_path)
    fake = FakeGitHub({})
    _install(monkeypatch, fake)
    console = MockConsole()

    result = commit_files(
        workspace_root=tmp_path,
        repo=REPO,
        branch=None,
        files=files,
        message="Update Version in WordPress specific files",
        console=console,
        dry_run=True,
    )
    assert result == Ok(None)
    assert fake.calls == []
    assert console.find("src/Acme.php, acme.php, README.txt")
