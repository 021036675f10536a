"""Tests for wprel.services.ref module."""

from __future__ import annotations

from pathlib import Path

import pytest

from wprel.core.result import Err, Ok
from wprel.services.model import ReleaseRef
from wprel.services.ref import (
    export_release_version,
    parse_ref,
    require_tag,
    tag_ref,
    version_from_ref,
)


class TestVersionFromRef:
    @pytest.mark.parametrize(
        ("ref", "version"),
        [
            ("refs/tags/1.4.0", "1.4.0"),
            ("refs/tags/v2.0.0-beta.1", "v2.0.0-beta.1"),
            ("refs/heads/main", "main"),
            ("refs/tags/release/1.0", "release/1.0"),
            ("1.2.3", "1.2.3"),
            ("  refs/tags/1.0.0\n", "1.0.0"),
        ],
    )
    def test_strips_prefix(self, ref: str, version: str) -> None:
        assert version_from_ref(ref) == Ok(version)

    @pytest.mark.parametrize("ref", ["", "   ", "refs/tags", "refs/tags/", "refs/"])
    def test_invalid(self, ref: str) -> None:
        result = version_from_ref(ref)
        assert isinstance(result, Err)
        assert result.error.kind == "invalid_ref"


class TestParseRef:
    def test_tag(self) -> None:
        assert parse_ref("refs/tags/1.4.0") == Ok(
            ReleaseRef(ref="refs/tags/1.4.0", kind="tags", version="1.4.0")
        )

    def test_branch(self) -> None:
        result = parse_ref("refs/heads/main")
        assert isinstance(result, Ok)
        assert result.value.kind == "heads"
        assert not result.value.is_tag

    def test_bare_value(self) -> None:
        result = parse_ref("1.0.0")
        assert isinstance(result, Ok)
        assert result.value.kind == "other"

    def test_tag_ref_roundtrip(self) -> None:
        result = parse_ref(tag_ref(" 3.1.0 "))
        assert isinstance(result, Ok)
        assert result.value.is_tag
        assert result.value.version == "3.1.0"


class TestRequireTag:
    def test_accepts_tag(self) -> None:
        ref = ReleaseRef(ref="refs/tags/1.0.0", kind="tags", version="1.0.0")
        assert require_tag(ref) == Ok(ref)

    def test_rejects_branch(self) -> None:
        ref = ReleaseRef(ref="refs/heads/main", kind="heads", version="main")
        result = require_tag(ref)
        assert isinstance(result, Err)
        assert result.error.kind == "invalid_ref"
        assert "not a tag push" in result.error.message


class TestExportReleaseVersion:
    def test_no_env_file(self) -> None:
        assert export_release_version(version="1.0.0", env_file=None) == Ok(False)

    def test_appends(self, tmp_path: Path) -> None:
        env_file = tmp_path / "github_env"
        env_file.write_text("OTHER=x\n", encoding="utf-8")
        assert export_release_version(version="1.4.0", env_file=env_file) == Ok(True)
        assert env_file.read_text(encoding="utf-8") == "OTHER=x\nRELEASE_VERSION=1.4.0\n"

    def test_unwritable(self, tmp_path: Path) -> None:
        result = export_release_version(version="1.0.0", env_file=tmp_path / "missing" / "env")
        assert isinstance(result, Err)
        assert result.error.kind == "invalid_input"
