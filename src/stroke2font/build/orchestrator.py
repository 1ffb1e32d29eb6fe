from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Optional, TypeVar

from stroke2font.build.fs import copy_file, ensure_dir, remove_if_exists, remove_tree, reset_dir
from stroke2font.build_cache.io import save_manifest
from stroke2font.build_cache.models import ChangePlan
from stroke2font.build_cache.planner import plan_incremental_build
from stroke2font.config.models import ToolConfig
from stroke2font.errors import TransformTimeoutError
from stroke2font.transforms.interfaces import FontGenerationResult, FontGenerator, SvgFixer

logger = logging.getLogger(__name__)

SCRATCH_DIR_NAME = "tmp-input"

T = TypeVar("T")


@dataclass(slots=True)
class BuildResult:
    plan: ChangePlan
    skipped: bool = False
    cleaned_files: list[str] = field(default_factory=list)
    removed_files: list[str] = field(default_factory=list)
    fonts: Optional[FontGenerationResult] = None

    @property
    def fonts_generated(self) -> bool:
        return self.fonts is not None


class IconFontBuilder:
    """
    Runs one incremental build: plan, re-clean what changed, regenerate fonts, commit.

    The manifest is written only after both transforms succeed, so a failed or
    interrupted build is re-evaluated in full on the next run.
    """

    def __init__(self, *, config: ToolConfig, svg_fixer: SvgFixer, font_generator: FontGenerator) -> None:
        self._config = config
        self._svg_fixer = svg_fixer
        self._font_generator = font_generator

    @property
    def input_dir(self) -> Path:
        return Path(self._config.clean_icons.icons_src_dir)

    @property
    def cleaned_dir(self) -> Path:
        return Path(self._config.clean_icons.icons_cleaned_dir)

    @property
    def output_dir(self) -> Path:
        return Path(self._config.generate_fonts.output_dir)

    @property
    def scratch_dir(self) -> Path:
        return self.output_dir / SCRATCH_DIR_NAME

    async def build(self) -> BuildResult:
        ensure_dir(self.cleaned_dir)
        ensure_dir(self.output_dir)

        plan = await plan_incremental_build(
            self.input_dir,
            self.output_dir,
            self._config.effective_options(),
            content_hash=self._config.build.content_hash,
        )
        if plan.is_noop:
            logger.info("No SVG changes detected, skipping clean and font generation.")
            return BuildResult(plan=plan, skipped=True)

        result = BuildResult(plan=plan)
        for rel_path in plan.deleted_files:
            if remove_if_exists(self.cleaned_dir / rel_path):
                result.removed_files.append(rel_path)
        if plan.deleted_files:
            logger.info("Removed cleaned copies of deleted icons. count=%d", len(result.removed_files))

        result.cleaned_files = plan.files_to_clean()
        if result.cleaned_files:
            await self._clean(result.cleaned_files)
        else:
            logger.info("No SVGs to clean.")

        logger.info("Generating font(s)...")
        font_options = self._config.generate_fonts.model_copy(update={"input_dir": str(self.cleaned_dir)})
        result.fonts = await self._run_transform("font generation", self._font_generator.generate(font_options))

        save_manifest(plan.manifest_path, plan.next_manifest)
        logger.info(
            "Build completed. cleaned=%d removed=%d glyphs=%d",
            len(result.cleaned_files),
            len(result.removed_files),
            len(result.fonts.codepoints),
        )
        return result

    async def _clean(self, rel_paths: list[str]) -> None:
        logger.info("Cleaning SVGs (%d file(s))...", len(rel_paths))
        reset_dir(self.scratch_dir)
        for rel_path in rel_paths:
            copy_file(self.input_dir / rel_path, self.scratch_dir / rel_path)

        await self._run_transform(
            "SVG repair",
            self._svg_fixer.fix(self.scratch_dir, self.cleaned_dir, self._config.clean_icons.svg_fixer),
        )
        remove_tree(self.scratch_dir)

    async def _run_transform(self, transform: str, awaitable: Awaitable[T]) -> T:
        """
        Await a transform, bounded by the configured timeout.

        On timeout the transform is cancelled. Work it runs in a thread keeps running
        until its next cancellation check; the built-in font generator checks before
        each file it writes, and the Inkscape fixer's subprocesses are killed with it.
        """
        timeout = self._config.build.transform_timeout_seconds
        if timeout is None:
            return await awaitable
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise TransformTimeoutError(transform, timeout) from e
