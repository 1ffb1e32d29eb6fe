from __future__ import annotations

from stroke2font.config.loader import YamlConfigLoader, build_config_from_flags
from stroke2font.config.models import ConfigLoadRequest, ToolConfig

__all__ = ["ConfigLoadRequest", "ToolConfig", "YamlConfigLoader", "build_config_from_flags"]
