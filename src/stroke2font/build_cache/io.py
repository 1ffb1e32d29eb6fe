from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from stroke2font.build_cache.models import FileFingerprint, Manifest, SchemaVersion

logger = logging.getLogger(__name__)


def atomic_write_json(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    tmp_path.replace(path)


def _encode_fingerprint(fp: FileFingerprint) -> dict:
    payload: Dict[str, Any] = {
        "rel": fp.rel_path,
        "size": fp.size_bytes,
        "mtimeMs": fp.mtime_ms,
    }
    if fp.sha256 is not None:
        payload["sha256"] = fp.sha256
    return payload


def _check_rel_path(rel_path: str) -> None:
    # Manifest keys name files directly inside the icon directory
    if not rel_path or rel_path in (".", "..") or "/" in rel_path or "\\" in rel_path:
        raise ValueError(f"Manifest file key is not a plain file name: {rel_path!r}")


def _decode_fingerprint(rel_path: str, payload: dict) -> FileFingerprint:
    _check_rel_path(rel_path)
    sha = payload.get("sha256")
    return FileFingerprint(
        rel_path=str(payload.get("rel", rel_path)),
        size_bytes=int(payload["size"]),
        mtime_ms=float(payload["mtimeMs"]),
        sha256=str(sha) if sha is not None else None,
    )


def encode_manifest(manifest: Manifest) -> dict:
    return {
        "version": manifest.schema_version,
        "optionsHash": manifest.options_hash,
        "files": {rel: _encode_fingerprint(fp) for rel, fp in manifest.files.items()},
    }


def decode_manifest(payload: Any) -> Manifest:
    if not isinstance(payload, dict):
        raise ValueError(f"Manifest must be a JSON object, got: {type(payload).__name__}")
    files_payload = payload.get("files", {})
    if not isinstance(files_payload, dict):
        raise ValueError("Manifest 'files' must be a JSON object")
    files: Dict[str, FileFingerprint] = {}
    for rel_path, fp_payload in files_payload.items():
        files[rel_path] = _decode_fingerprint(rel_path, fp_payload)
    return Manifest(
        schema_version=int(payload["version"]),
        options_hash=str(payload["optionsHash"]),
        files=files,
    )


def load_manifest(path: Path) -> Optional[Manifest]:
    """
    Read the manifest of the last successful build.

    Returns None for a missing, malformed or schema-mismatched file, which callers treat
    as a first build. Permission errors and other I/O failures propagate.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except UnicodeDecodeError:
        logger.warning("Manifest is not valid UTF-8, ignoring it. path=%s", path)
        return None

    try:
        payload = json.loads(raw)
        version = payload.get("version") if isinstance(payload, dict) else None
        # bool and float would compare equal to the int constant
        if type(version) is not int or version != SchemaVersion:
            logger.warning(
                "Manifest schema version mismatch, ignoring it. path=%s expected=%s actual=%s",
                path,
                SchemaVersion,
                version,
            )
            return None
        return decode_manifest(payload)
    except (ValueError, KeyError, TypeError, AttributeError):
        logger.warning("Failed to parse manifest, ignoring it. path=%s", path, exc_info=True)
        return None


def save_manifest(path: Path, manifest: Manifest) -> None:
    atomic_write_json(path, encode_manifest(manifest))
    logger.info("Manifest written. path=%s files=%d", path, len(manifest.files))
