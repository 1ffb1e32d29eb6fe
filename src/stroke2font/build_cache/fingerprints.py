from __future__ import annotations

import hashlib
import json
import os
from pathlib import Path
from typing import Any

from stroke2font.build_cache.models import FileFingerprint

ICON_SOURCE_EXTENSION = ".svg"


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def fingerprint(abs_path: Path, rel_path: str, *, content_hash: bool = False) -> FileFingerprint:
    """Stat one source file. Raises OSError when the file is gone or unreadable."""
    stat = abs_path.stat()
    digest = sha256_file(abs_path) if content_hash else None
    return FileFingerprint(
        rel_path=rel_path,
        size_bytes=stat.st_size,
        mtime_ms=stat.st_mtime_ns / 1_000_000,
        sha256=digest,
    )


def canonical_json(value: Any) -> str:
    # sort_keys applies recursively; default=str keeps Paths and enums hashable
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


def hash_configuration(effective_options: Any) -> str:
    raw = canonical_json(effective_options).encode("utf-8")
    return hashlib.sha1(raw).hexdigest()


def list_input_files(directory: Path) -> list[str]:
    names: list[str] = []
    with os.scandir(directory) as entries:
        for entry in entries:
            if not entry.is_file(follow_symlinks=False):
                continue
            if entry.name.lower().endswith(ICON_SOURCE_EXTENSION):
                names.append(entry.name)
    return sorted(names)
