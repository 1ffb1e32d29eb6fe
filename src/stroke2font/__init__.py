"""Incremental stroke-SVG to icon font builder."""

from __future__ import annotations

__version__ = "0.1.0"
