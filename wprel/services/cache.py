"""Dependency cache keyed by lockfile hashes.

The release pipeline never installs dependencies itself: a prior build step
saves `vendor/`, `node_modules/`, ... under a key derived from the lockfiles,
and the release run restores that exact entry or fails.

Store layout: `<store_dir>/<key>.tar.gz`. Entries are immutable.
"""

from __future__ import annotations

import hashlib
import os
import tarfile
import tempfile
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from wprel.core.config import CacheConfig
from wprel.core.errors import PipelineError
from wprel.core.result import Err, Ok, Result
from wprel.output.console import ConsoleProtocol, Style
from wprel.platform.paths import user_cache_dir

CACHE_DIR_ENV = "WPREL_CACHE_DIR"


@dataclass(frozen=True, slots=True)
class CacheEntry:
    key: str
    path: Path


def _sha256_file(path: Path) -> bytes:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.digest()


def hash_files(paths: Iterable[Path]) -> str:
    """Hash files the way GitHub's `hashFiles()` does.

    SHA-256 over the SHA-256 digest of each existing file, in order. Returns
    an empty string when none of the files exist.
    """
    outer = hashlib.sha256()
    found = False
    for p in paths:
        if not p.is_file():
            continue
        outer.update(_sha256_file(p))
        found = True
    return outer.hexdigest() if found else ""


def cache_key(*, root: Path, config: CacheConfig) -> str:
    """`<prefix>-<hash lockfile 1>-<hash lockfile 2>...`"""
    parts = [config.prefix]
    parts.extend(hash_files([root / name]) for name in config.lockfiles)
    return "-".join(parts)


def store_dir(config: CacheConfig) -> Path:
    env = os.environ.get(CACHE_DIR_ENV)
    if env:
        return Path(env).expanduser()
    if config.dir:
        return Path(config.dir).expanduser()
    return user_cache_dir()


def entry_for(*, root: Path, config: CacheConfig) -> CacheEntry:
    key = cache_key(root=root, config=config)
    return CacheEntry(key=key, path=store_dir(config) / f"{key}.tar.gz")


def restore_cache(
    *,
    root: Path,
    config: CacheConfig,
    console: ConsoleProtocol,
    dry_run: bool = False,
) -> Result[CacheEntry, PipelineError]:
    """Restore the cache entry for the current lockfiles into root.

    A missing entry is fatal: there is no rebuild fallback.
    """
    entry = entry_for(root=root, config=config)
    console.print(f"cache key: {entry.key}", Style.DIM)

    if not entry.path.is_file():
        return Err(
            PipelineError(
                kind="cache_miss",
                message=f"no cache entry for key {entry.key}",
                hint=f"Run the dependency install step first (expected {entry.path})",
            )
        )

    console.print(f"extract {entry.path} -> {root}", Style.DIM)
    if dry_run:
        return Ok(entry)

    try:
        with tarfile.open(entry.path, "r:gz") as tf:
            tf.extractall(root, filter="data")
    except (tarfile.TarError, OSError) as e:
        return Err(
            PipelineError(
                kind="cache_failed",
                message=f"failed to restore cache: {e}",
                hint=str(entry.path),
            )
        )

    return Ok(entry)


def save_cache(
    *,
    root: Path,
    config: CacheConfig,
    console: ConsoleProtocol,
) -> Result[CacheEntry, PipelineError]:
    """Archive the configured cache paths under the current key.

    Saving a key that already exists is a no-op.
    """
    entry = entry_for(root=root, config=config)
    console.print(f"cache key: {entry.key}", Style.DIM)

    if entry.path.is_file():
        console.info(f"cache entry exists, not overwriting: {entry.key}")
        return Ok(entry)

    present = [name for name in config.paths if (root / name).exists()]
    if not present:
        return Err(
            PipelineError(
                kind="cache_failed",
                message="nothing to cache",
                hint=f"None of {', '.join(config.paths)} exist in {root}",
            )
        )

    entry.path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{entry.key}.", suffix=".tmp", dir=str(entry.path.parent)
    )
    os.close(fd)
    tmp_path = Path(tmp_name)

    try:
        with tarfile.open(tmp_path, "w:gz") as tf:
            for name in present:
                console.print(f"add {name}", Style.DIM)
                tf.add(root / name, arcname=name)
        os.replace(tmp_path, entry.path)
    except (tarfile.TarError, OSError) as e:
        return Err(
            PipelineError(
                kind="cache_failed",
                message=f"failed to save cache: {e}",
                hint=str(entry.path),
            )
        )
    finally:
        tmp_path.unlink(missing_ok=True)

    return Ok(entry)
