from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

RefKind = Literal["tags", "heads", "other"]
FindingType = Literal["ERROR", "WARNING"]


@dataclass(frozen=True, slots=True)
class ReleaseRef:
    """A git ref and the release version derived from it."""

    ref: str
    kind: RefKind
    version: str

    @property
    def is_tag(self) -> bool:
        return self.kind == "tags"


@dataclass(frozen=True, slots=True)
class ReleaseArtifact:
    """The zip attached to a release. Immutable once uploaded."""

    version: str
    path: Path
    files: tuple[str, ...]
    size: int
    sha256: str

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True, slots=True)
class VersionUpdate:
    path: Path
    substitutions: int

    @property
    def matched(self) -> bool:
        return self.substitutions > 0


@dataclass(frozen=True, slots=True)
class CheckFinding:
    file: str
    line: int
    column: int
    type: FindingType
    code: str
    message: str

    def pretty(self) -> str:
        return f"{self.file}:{self.line}:{self.column} {self.type} {self.code}: {self.message}"


@dataclass(frozen=True, slots=True)
class GhRelease:
    tag: str
    asset_names: tuple[str, ...]
