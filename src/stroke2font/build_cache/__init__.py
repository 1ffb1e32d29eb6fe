"""Fingerprints, manifest persistence and change planning for incremental builds."""

from __future__ import annotations

from stroke2font.build_cache.fingerprints import fingerprint, hash_configuration, list_input_files
from stroke2font.build_cache.io import load_manifest, save_manifest
from stroke2font.build_cache.models import ChangePlan, FileFingerprint, Manifest, SchemaVersion
from stroke2font.build_cache.planner import manifest_path_for, plan_changes, plan_incremental_build

__all__ = [
    "ChangePlan",
    "FileFingerprint",
    "Manifest",
    "SchemaVersion",
    "fingerprint",
    "hash_configuration",
    "list_input_files",
    "load_manifest",
    "manifest_path_for",
    "plan_changes",
    "plan_incremental_build",
    "save_manifest",
]
