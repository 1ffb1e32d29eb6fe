from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Mapping, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

DEFAULT_CSS_TEMPLATE = Path(__file__).parent / "templates" / "default.css.j2"


class CssRenderer:
    """Renders the stylesheet template with an explicit set of filters."""

    def __init__(self, *, helpers: Mapping[str, Callable[..., Any]], template_path: Optional[Path] = None) -> None:
        self._template_path = template_path or DEFAULT_CSS_TEMPLATE
        self._env = Environment(
            loader=FileSystemLoader(str(self._template_path.parent)),
            undefined=StrictUndefined,
            autoescape=False,
            keep_trailing_newline=True,
        )
        self._env.filters.update(helpers)

    @property
    def template_path(self) -> Path:
        return self._template_path

    def render(self, context: Mapping[str, Any]) -> str:
        template = self._env.get_template(self._template_path.name)
        return template.render(**context)
