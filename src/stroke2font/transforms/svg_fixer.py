from __future__ import annotations

import asyncio
import logging
import os
import shutil
from pathlib import Path

from stroke2font.build_cache.fingerprints import list_input_files
from stroke2font.config.models import SvgFixerOptions
from stroke2font.errors import SvgFixerError
from stroke2font.transforms.interfaces import SvgFixer

logger = logging.getLogger(__name__)


def _build_cmd(inkscape: str, src: Path, dst: Path) -> list[str]:
    return [
        inkscape,
        "--actions=select-all:all;object-stroke-to-path",
        "--export-type=svg",
        "--export-plain-svg",
        f"--export-filename={dst}",
        str(src),
    ]


class InkscapeSvgFixer(SvgFixer):
    """Turns stroked outlines into filled paths with the Inkscape CLI, one process per icon."""

    def __init__(self, *, inkscape_path: str = "inkscape", concurrency: int | None = None) -> None:
        self._inkscape_path = inkscape_path
        self._semaphore = asyncio.Semaphore(max(1, int(concurrency or os.cpu_count() or 4)))

    def _resolve_inkscape(self) -> str:
        inkscape = shutil.which(self._inkscape_path)
        if inkscape is None:
            raise SvgFixerError(f"Inkscape executable not found. inkscape_path={self._inkscape_path}")
        return inkscape

    async def fix(self, source_dir: Path, dest_dir: Path, options: SvgFixerOptions) -> None:
        if not source_dir.is_dir():
            raise SvgFixerError(f"SVG source directory does not exist: {source_dir}")
        if not dest_dir.is_dir():
            if options.throw_if_destination_does_not_exist:
                raise SvgFixerError(f"SVG destination directory does not exist: {dest_dir}")
            dest_dir.mkdir(parents=True, exist_ok=True)

        inkscape = self._resolve_inkscape()
        names = list_input_files(source_dir)
        total = len(names)
        progress = {"done": 0}

        async def _fix_one(name: str) -> None:
            async with self._semaphore:
                await self._run_inkscape(inkscape, source_dir / name, dest_dir / name)
            progress["done"] += 1
            if options.show_progress_bar:
                logger.info("[%d/%d] Fixed %s", progress["done"], total, name)

        results = await asyncio.gather(*(_fix_one(name) for name in names), return_exceptions=True)
        for outcome in results:
            if isinstance(outcome, BaseException):
                raise outcome

    async def _run_inkscape(self, inkscape: str, src: Path, dst: Path) -> None:
        cmd = _build_cmd(inkscape, src, dst)
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise SvgFixerError(f"Failed to start Inkscape. path={inkscape}") from e

        try:
            _, stderr = await proc.communicate()
        except asyncio.CancelledError:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()
            raise
        if proc.returncode != 0:
            detail = stderr.decode(errors="ignore").strip() or "<empty>"
            raise SvgFixerError(f"Inkscape failed for {src.name}. returncode={proc.returncode} stderr={detail}")
        if not dst.exists():
            raise SvgFixerError(f"Inkscape produced no output for {src.name}. expected={dst}")
