from __future__ import annotations

from typing import TYPE_CHECKING

from stroke2font.transforms.interfaces import FontGenerationResult, FontGenerator, SvgFixer

if TYPE_CHECKING:
    from stroke2font.transforms.font_generator import FontToolsFontGenerator
    from stroke2font.transforms.svg_fixer import InkscapeSvgFixer

__all__ = [
    "FontGenerationResult",
    "FontGenerator",
    "FontToolsFontGenerator",
    "InkscapeSvgFixer",
    "SvgFixer",
]


def __getattr__(name: str):
    if name == "FontToolsFontGenerator":
        from stroke2font.transforms.font_generator import FontToolsFontGenerator as _FontToolsFontGenerator

        return _FontToolsFontGenerator
    if name == "InkscapeSvgFixer":
        from stroke2font.transforms.svg_fixer import InkscapeSvgFixer as _InkscapeSvgFixer

        return _InkscapeSvgFixer
    raise AttributeError(name)
