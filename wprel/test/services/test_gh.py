from __future__ import annotations

import base64
import json
from pathlib import Path

import pytest

from wprel.core.result import Err, Ok, Result
from wprel.platform.process import ProcessError
from wprel.services import gh as gh_mod


def _err(*, stderr: str, returncode: int = 1) -> Err[ProcessError]:
    return Err(
        ProcessError(
            command=("gh", "api", "repos/acme/plugin"),
            returncode=returncode,
            stdout="",
            stderr=stderr,
        )
    )


def _no_sleep(seconds: float) -> None:
    del seconds


def test_gh_api_json_retries_transient_error(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    calls: list[list[str]] = []
    responses: list[Result[str, ProcessError]] = [
        _err(stderr="HTTP 503 Service Unavailable"),
        Ok('{"default_branch": "main"}'),
    ]

    def fake_run(cmd: list[str], *, cwd: Path, timeout: float | None = None):
        del cwd
        del timeout
        calls.append(cmd)
        return responses.pop(0)

    monkeypatch.setattr(gh_mod, "run_process", fake_run)
    monkeypatch.setattr(gh_mod, "sleep", _no_sleep)

    result = gh_mod.repo_default_branch(workspace_root=tmp_path, repo="acme/plugin")
    assert result == Ok("main")
    assert len(calls) == 2


def test_gh_api_json_gives_up_after_retry_budget(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    calls: list[list[str]] = []
    sleeps: list[float] = []

    def fake_run(cmd: list[str], *, cwd: Path, timeout: float | None = None):
        del cwd
        del timeout
        calls.append(cmd)
        return _err(stderr="connection reset by peer")

    monkeypatch.setattr(gh_mod, "run_process", fake_run)
    monkeypatch.setattr(gh_mod, "sleep", sleeps.append)

    result = gh_mod.gh_api_json(workspace_root=tmp_path, endpoint="repos/acme/plugin")
    assert isinstance(result, Err)
    assert result.error.hint == "connection reset by peer"
    assert len(calls) == 3
    assert sleeps == [1.0, 2.0]


def test_gh_api_json_does_not_retry_on_non_transient(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    calls: list[list[str]] = []

    def fake_run(cmd: list[str], *, cwd: Path, timeout: float | None = None):
        del cwd
        del timeout
        calls.append(cmd)
        return _err(stderr="HTTP 404 Not Found")

    monkeypatch.setattr(gh_mod, "run_process", fake_run)
    monkeypatch.setattr(gh_mod, "sleep", _no_sleep)

    result = gh_mod.gh_api_json(workspace_root=tmp_path, endpoint="repos/acme/plugin")
    assert isinstance(result, Err)
    assert result.error.kind == "invalid_input"
    assert len(calls) == 1


def test_gh_api_write_sends_json_on_stdin(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    seen: list[tuple[list[str], str | None]] = []

    def fake_run(
        cmd: list[str],
        *,
        cwd: Path,
        timeout: float | None = None,
        input_text: str | None = None,
    ):
        del cwd
        del timeout
        seen.append((cmd, input_text))
        return Ok('{"sha": "abc"}')

    monkeypatch.setattr(gh_mod, "run_process", fake_run)

    result = gh_mod.gh_api_write(
        workspace_root=tmp_path,
        method="PATCH",
        endpoint="repos/acme/plugin/git/refs/heads/main",
        payload={"sha": "abc", "force": False},
        kind="commit_failed",
    )
    assert result == Ok({"sha": "abc"})
    cmd, body = seen[0]
    assert cmd == [
        "gh",
        "api",
        "--method",
        "PATCH",
        "repos/acme/plugin/git/refs/heads/main",
        "--input",
        "-",
    ]
    assert json.loads(body or "") == {"sha": "abc", "force": False}


def test_gh_api_write_is_not_retried(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls: list[list[str]] = []

    def fake_run(
        cmd: list[str],
        *,
        cwd: Path,
        timeout: float | None = None,
        input_text: str | None = None,
    ):
        del cwd, timeout, input_text
        calls.append(cmd)
        return _err(stderr="HTTP 502 Bad Gateway")

    monkeypatch.setattr(gh_mod, "run_process", fake_run)
    monkeypatch.setattr(gh_mod, "sleep", _no_sleep)

    result = gh_mod.gh_api_write(
        workspace_root=tmp_path,
        method="POST",
        endpoint="repos/acme/plugin/git/trees",
        payload={},
        kind="commit_failed",
    )
    assert isinstance(result, Err)
    assert result.error.kind == "commit_failed"
    assert len(calls) == 1


class TestGetRepoFileText:
    def test_decodes_base64(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        encoded = base64.b64encode("Stable tag: 1.0.0\n".encode()).decode()
        # The Contents API returns base64 split across lines.
        wrapped = "\n".join(encoded[i : i + 8] for i in range(0, len(encoded), 8))

        def fake_run(cmd: list[str], *, cwd: Path, timeout: float | None = None):
            del cwd
            del timeout
            assert cmd == ["gh", "api", "repos/acme/plugin/contents/README.txt?ref=main"]
            return Ok(json.dumps({"encoding": "base64", "content": wrapped}))

        monkeypatch.setattr(gh_mod, "run_process", fake_run)

        result = gh_mod.get_repo_file_text(
            workspace_root=tmp_path, repo="acme/plugin", path="README.txt", ref="main"
        )
        assert result == Ok("Stable tag: 1.0.0\n")

    def test_missing_file_is_none(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        def fake_run(cmd: list[str], *, cwd: Path, timeout: float | None = None):
            del cmd, cwd, timeout
            return _err(stderr="gh: Not Found (HTTP 404)")

        monkeypatch.setattr(gh_mod, "run_process", fake_run)

        result = gh_mod.get_repo_file_text(
            workspace_root=tmp_path, repo="acme/plugin", path="README.txt", ref="main"
        )
        assert result == Ok(None)


class TestViewRelease:
    def test_parses_assets(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        payload = {
            "tagName": "1.2.0",
            "assets": [{"name": "acme-1.2.0.zip"}, {"size": 3}],
        }

        def fake_run(cmd: list[str], *, cwd: Path, timeout: float | None = None):
            del cwd
            del timeout
            assert cmd[:4] == ["gh", "release", "view", "1.2.0"]
            return Ok(json.dumps(payload))

        monkeypatch.setattr(gh_mod, "run_process", fake_run)

        result = gh_mod.view_release(workspace_root=tmp_path, repo="acme/plugin", tag="1.2.0")
        assert isinstance(result, Ok)
        assert result.value is not None
        assert result.value.asset_names == ("acme-1.2.0.zip",)

    def test_release_not_found(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        def fake_run(cmd: list[str], *, cwd: Path, timeout: float | None = None):
            del cmd, cwd, timeout
            return _err(stderr="release not found")

        monkeypatch.setattr(gh_mod, "run_process", fake_run)

        result = gh_mod.view_release(workspace_root=tmp_path, repo="acme/plugin", tag="9.9.9")
        assert result == Ok(None)


def test_ensure_gh_available_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(gh_mod.shutil, "which", lambda name: None)
    result = gh_mod.ensure_gh_available()
    assert isinstance(result, Err)
    assert result.error.kind == "gh_missing"


def test_ensure_gh_auth_failure(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_run(cmd: list[str], *, cwd: Path, timeout: float | None = None):
        del cmd, cwd, timeout
        return _err(stderr="You are not logged into any GitHub hosts.")

    monkeypatch.setattr(gh_mod, "run_process", fake_run)
    result = gh_mod.ensure_gh_auth(workspace_root=tmp_path)
    assert isinstance(result, Err)
    assert result.error.kind == "gh_auth_required"
