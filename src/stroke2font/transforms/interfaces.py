from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict

from stroke2font.config.models import GenerateFontsOptions, SvgFixerOptions


@dataclass(slots=True)
class FontGenerationResult:
    codepoints: Dict[str, int] = field(default_factory=dict)
    written_files: list[Path] = field(default_factory=list)


class SvgFixer:
    async def fix(self, source_dir: Path, dest_dir: Path, options: SvgFixerOptions) -> None:
        """
        Repair every SVG in source_dir and write the cleaned copies into dest_dir.

        Cleaned files keep their source file names. Any failure is raised as a
        TransformError and aborts the build.
        """
        raise NotImplementedError


class FontGenerator:
    async def generate(self, options: GenerateFontsOptions) -> FontGenerationResult:
        """Compile every SVG in options.input_dir into the requested font and CSS assets."""
        raise NotImplementedError
