from __future__ import annotations

from stroke2font.build.orchestrator import BuildResult, IconFontBuilder

__all__ = ["BuildResult", "IconFontBuilder"]
