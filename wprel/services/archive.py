"""Release artifact packaging.

The artifact mirrors `cd ..; zip -r <slug>-<version>.zip ./*` run from the
plugin checkout: every non-hidden entry of the parent directory, recursively
(hidden files below the top level are kept), so the zip unpacks to the
plugin folder WordPress expects.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from zipfile import ZIP_DEFLATED, ZipFile

from wprel.core.errors import PipelineError
from wprel.core.result import Err, Ok, Result
from wprel.output.console import ConsoleProtocol, Style
from wprel.services.model import ReleaseArtifact


def artifact_name(*, slug: str, version: str) -> str:
    """Zip file name for a release; path separators in the version become `-`."""
    safe = version.replace("/", "-").replace("\\", "-")
    return f"{slug}-{safe}.zip"


def _sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def collect_archive_files(base_dir: Path, *, exclude: set[Path]) -> list[tuple[Path, str]]:
    """(source, arcname) pairs for every file under the non-hidden top-level entries."""
    out: list[tuple[Path, str]] = []
    for top in sorted(base_dir.iterdir()):
        if top.name.startswith(".") or top in exclude:
            continue
        if top.is_file():
            out.append((top, top.name))
            continue
        for p in sorted(top.rglob("*")):
            if p.is_dir() or p in exclude:
                continue
            out.append((p, p.relative_to(base_dir).as_posix()))
    return out


def _zip_files(zip_path: Path, *, files: list[tuple[Path, str]]) -> None:
    zip_path.parent.mkdir(parents=True, exist_ok=True)
    # Restored caches and fresh checkouts can carry mtime=0 files; ZIP cannot
    # represent timestamps before 1980.
    with ZipFile(zip_path, "w", compression=ZIP_DEFLATED, strict_timestamps=False) as zf:
        for src, arc in files:
            zf.write(src, arcname=arc)


def build_artifact(
    *,
    archive_dir: Path,
    slug: str,
    version: str,
    console: ConsoleProtocol,
    out_dir: Path | None = None,
) -> Result[ReleaseArtifact, PipelineError]:
    zip_path = (out_dir or archive_dir) / artifact_name(slug=slug, version=version)

    try:
        files = collect_archive_files(archive_dir, exclude={zip_path})
    except OSError as e:
        return Err(
            PipelineError(
                kind="archive_failed",
                message=f"failed to scan {archive_dir}: {e}",
                hint=str(archive_dir),
            )
        )

    if not files:
        return Err(
            PipelineError(
                kind="archive_failed",
                message="nothing to archive",
                hint=str(archive_dir),
            )
        )

    console.print(f"zip {zip_path.name} ({len(files)} files)", Style.DIM)
    try:
        zip_path.unlink(missing_ok=True)
        _zip_files(zip_path, files=files)
        size = zip_path.stat().st_size
        sha256 = _sha256_file(zip_path)
    except OSError as e:
        return Err(
            PipelineError(
                kind="archive_failed",
                message=f"failed to write {zip_path.name}: {e}",
                hint=str(zip_path),
            )
        )

    return Ok(
        ReleaseArtifact(
            version=version,
            path=zip_path,
            files=tuple(arc for _, arc in files),
            size=size,
            sha256=sha256,
        )
    )
