from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

SchemaVersion = 1
MANIFEST_FILENAME = ".manifest.json"


@dataclass(frozen=True, slots=True)
class FileFingerprint:
    rel_path: str
    size_bytes: int
    mtime_ms: float
    sha256: Optional[str] = None

    def same_as(self, other: Optional[FileFingerprint]) -> bool:
        """Size and mtime identity; digests are compared only when this fingerprint carries one."""
        if other is None:
            return False
        if self.size_bytes != other.size_bytes or self.mtime_ms != other.mtime_ms:
            return False
        if self.sha256 is not None:
            return self.sha256 == other.sha256
        return True


@dataclass(slots=True)
class Manifest:
    schema_version: int
    options_hash: str
    files: Dict[str, FileFingerprint] = field(default_factory=dict)


@dataclass(slots=True)
class ChangePlan:
    manifest_path: Path
    next_manifest: Manifest
    changed_files: list[str]
    deleted_files: list[str]
    options_changed: bool
    prior_manifest_existed: bool

    @property
    def is_noop(self) -> bool:
        return not self.changed_files and not self.deleted_files and not self.options_changed

    def files_to_clean(self) -> list[str]:
        if self.options_changed:
            return sorted(self.next_manifest.files)
        return list(self.changed_files)
