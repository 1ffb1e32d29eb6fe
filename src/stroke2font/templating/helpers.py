from __future__ import annotations

import re
from typing import Any, Callable, Dict, Iterable, Mapping

_SIZE_PREFIX_RE = re.compile(r"^\d+(?:px)?[-_]", re.IGNORECASE)


def replace_separator(value: Any, split_separator: str, separator: str) -> str:
    """Split on a regex, trim every part, drop empty parts and rejoin with separator."""
    parts = [part.strip() for part in re.split(split_separator, str(value))]
    return separator.join(part for part in parts if part)


def sorted_entries(value: Any) -> list[tuple[Any, Any]]:
    if not isinstance(value, Mapping):
        return []
    return [(key, value[key]) for key in sorted(value.keys(), key=str)]


def strip_size_prefix(name: Any) -> str:
    """Drop a leading size token such as ``24px_`` or ``16-`` from an icon name."""
    raw = str(name)
    stripped = _SIZE_PREFIX_RE.sub("", raw, count=1)
    return stripped or raw


def find_class_name_collisions(names: Iterable[Any]) -> Dict[str, list[str]]:
    """Group icon names whose ``strip_size_prefix`` forms coincide; only groups of two or more."""
    groups: Dict[str, list[str]] = {}
    for name in sorted(str(n) for n in names):
        groups.setdefault(strip_size_prefix(name), []).append(name)
    return {class_name: members for class_name, members in groups.items() if len(members) > 1}


def build_helper_registry() -> Dict[str, Callable[..., Any]]:
    """Template filters, under their template names and their Python names."""
    helpers: Dict[str, Callable[..., Any]] = {
        "replaceSeparator": replace_separator,
        "sortedEntries": sorted_entries,
        "stripSizePrefix": strip_size_prefix,
    }
    for func in (replace_separator, sorted_entries, strip_size_prefix):
        helpers[func.__name__] = func
    return helpers
