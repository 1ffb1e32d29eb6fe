from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from stroke2font.build_cache.fingerprints import fingerprint, hash_configuration, list_input_files
from stroke2font.build_cache.io import load_manifest
from stroke2font.build_cache.models import (
    MANIFEST_FILENAME,
    ChangePlan,
    FileFingerprint,
    Manifest,
    SchemaVersion,
)

logger = logging.getLogger(__name__)


def manifest_path_for(output_dir: Path) -> Path:
    return output_dir / MANIFEST_FILENAME


async def plan_changes(
    input_dir: Path,
    previous: Optional[Manifest],
    effective_options: Any,
    *,
    manifest_path: Path,
    content_hash: bool = False,
) -> ChangePlan:
    """
    Diff the current input directory against the previous manifest.

    next_manifest always covers every file listed now, whatever the orchestrator
    later decides to act on.
    """
    names = await asyncio.to_thread(list_input_files, input_dir)
    fingerprints = await asyncio.gather(
        *(
            asyncio.to_thread(fingerprint, input_dir / name, name, content_hash=content_hash)
            for name in names
        )
    )

    previous_files: Dict[str, FileFingerprint] = previous.files if previous else {}
    next_files: Dict[str, FileFingerprint] = {}
    changed: list[str] = []
    for name, fp in zip(names, fingerprints):
        next_files[name] = fp
        if not fp.same_as(previous_files.get(name)):
            changed.append(name)

    changed.sort()
    deleted = sorted(rel_path for rel_path in previous_files if rel_path not in next_files)

    options_hash = hash_configuration(effective_options)
    options_changed = previous is None or previous.options_hash != options_hash

    return ChangePlan(
        manifest_path=manifest_path,
        next_manifest=Manifest(schema_version=SchemaVersion, options_hash=options_hash, files=next_files),
        changed_files=changed,
        deleted_files=deleted,
        options_changed=options_changed,
        prior_manifest_existed=previous is not None,
    )


async def plan_incremental_build(
    input_dir: Path,
    output_dir: Path,
    effective_options: Any,
    *,
    content_hash: bool = False,
) -> ChangePlan:
    manifest_path = manifest_path_for(output_dir)
    previous = await asyncio.to_thread(load_manifest, manifest_path)
    plan = await plan_changes(
        input_dir,
        previous,
        effective_options,
        manifest_path=manifest_path,
        content_hash=content_hash,
    )
    logger.info(
        "Change plan computed. files=%d changed=%d deleted=%d options_changed=%s prior_manifest=%s",
        len(plan.next_manifest.files),
        len(plan.changed_files),
        len(plan.deleted_files),
        plan.options_changed,
        plan.prior_manifest_existed,
    )
    return plan
