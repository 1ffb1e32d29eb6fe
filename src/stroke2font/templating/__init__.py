from __future__ import annotations

from stroke2font.templating.helpers import (
    build_helper_registry,
    find_class_name_collisions,
    replace_separator,
    sorted_entries,
    strip_size_prefix,
)
from stroke2font.templating.renderer import DEFAULT_CSS_TEMPLATE, CssRenderer

__all__ = [
    "DEFAULT_CSS_TEMPLATE",
    "CssRenderer",
    "build_helper_registry",
    "find_class_name_collisions",
    "replace_separator",
    "sorted_entries",
    "strip_size_prefix",
]
