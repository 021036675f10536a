"""Release version resolution from the pushed git ref."""

from __future__ import annotations

from pathlib import Path

from wprel.core.errors import PipelineError
from wprel.core.result import Err, Ok, Result
from wprel.platform.files import append_line
from wprel.services.model import RefKind, ReleaseRef

RELEASE_VERSION_VAR = "RELEASE_VERSION"


def version_from_ref(ref: str) -> Result[str, PipelineError]:
    """Strip the `refs/<kind>/` prefix from a ref.

    Shortest-prefix match, so `refs/tags/release/1.0` keeps `release/1.0`.
    Values that are not full refs are returned unchanged.
    """
    value = ref.strip()
    if not value:
        return Err(
            PipelineError(
                kind="invalid_ref",
                message="empty git ref",
                hint="Set GITHUB_REF or pass --ref/--tag",
            )
        )

    if value.startswith("refs/"):
        _, sep, rest = value.removeprefix("refs/").partition("/")
        if not sep or not rest:
            return Err(PipelineError(kind="invalid_ref", message=f"invalid git ref: {value}"))
        return Ok(rest)
    return Ok(value)


def parse_ref(ref: str) -> Result[ReleaseRef, PipelineError]:
    version = version_from_ref(ref)
    if isinstance(version, Err):
        return version

    value = ref.strip()
    kind: RefKind = "other"
    if value.startswith("refs/tags/"):
        kind = "tags"
    elif value.startswith("refs/heads/"):
        kind = "heads"
    return Ok(ReleaseRef(ref=value, kind=kind, version=version.value))


def tag_ref(tag: str) -> str:
    return f"refs/tags/{tag.strip()}"


def require_tag(ref: ReleaseRef) -> Result[ReleaseRef, PipelineError]:
    if not ref.is_tag:
        return Err(
            PipelineError(
                kind="invalid_ref",
                message=f"not a tag push: {ref.ref}",
                hint="Releases run only for refs/tags/*",
            )
        )
    return Ok(ref)


def export_release_version(*, version: str, env_file: Path | None) -> Result[bool, PipelineError]:
    """Append RELEASE_VERSION to the GITHUB_ENV file.

    Returns Ok(False) when no env file is configured (local runs).
    """
    if env_file is None:
        return Ok(False)
    try:
        append_line(env_file, f"{RELEASE_VERSION_VAR}={version}")
    except OSError as e:
        return Err(
            PipelineError(
                kind="invalid_input",
                message=f"failed to write {RELEASE_VERSION_VAR}: {e}",
                hint=str(env_file),
            )
        )
    return Ok(True)
