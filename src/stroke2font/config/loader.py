from __future__ import annotations

import os
from pathlib import Path
from typing import Any, MutableMapping, Optional, Sequence

from stroke2font.config.models import (
    CleanIconsOptions,
    ConfigLoadRequest,
    FontTemplates,
    GenerateFontsOptions,
    SvgFixerOptions,
    ToolConfig,
)
from stroke2font.errors import ConfigError

CLEANED_DIR_NAME = ".cleaned-svg"

# Dotted key paths holding filesystem locations, resolved against the config file directory
_PATH_KEYS: Sequence[Sequence[str]] = (
    ("clean_icons", "icons_src_dir"),
    ("clean_icons", "icons_cleaned_dir"),
    ("generate_fonts", "input_dir"),
    ("generate_fonts", "output_dir"),
    ("generate_fonts", "templates", "css"),
    ("logging", "file", "path"),
)


def _read_yaml_config(path: Path) -> dict[str, Any]:
    try:
        import yaml  # type: ignore[import-not-found]
    except ModuleNotFoundError as e:  # pragma: no cover
        raise ModuleNotFoundError(
            "Missing dependency: PyYAML is required to load the YAML config file. Install 'PyYAML'."
        ) from e

    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    raw = path.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {path}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Top-level YAML must be a mapping, got: {type(data).__name__}")
    return data


def _load_dotenv_if_present(dotenv_path: Path) -> None:
    try:
        from dotenv import load_dotenv  # type: ignore[import-not-found]
    except ModuleNotFoundError as e:  # pragma: no cover
        raise ModuleNotFoundError(
            "Missing dependency: python-dotenv is required to load .env. Install 'python-dotenv'."
        ) from e

    if not dotenv_path.exists():
        return
    load_dotenv(dotenv_path=dotenv_path, override=False)


def _env_var_name_to_segments(env_var_name: str, prefix: str) -> Sequence[str]:
    remainder = env_var_name[len(prefix) :]
    parts = [p for p in remainder.split("__") if p]
    if not parts:
        raise ConfigError(f"Invalid environment variable override name: {env_var_name}")
    return [p.lower() for p in parts]


def _get_parent_mapping(config: MutableMapping[str, Any], path: Sequence[str]) -> MutableMapping[str, Any]:
    cur: MutableMapping[str, Any] = config
    for segment in path[:-1]:
        if segment not in cur:
            dotted = ".".join(path)
            raise ConfigError(f"Unknown configuration key path: {dotted}")
        next_value = cur[segment]
        if not isinstance(next_value, dict):
            dotted = ".".join(path)
            raise ConfigError(f"Configuration key path does not point to a mapping: {dotted}")
        cur = next_value
    return cur


def _apply_env_overrides(config: MutableMapping[str, Any], env_prefix: str) -> None:
    for name, value in os.environ.items():
        if not name.startswith(env_prefix):
            continue

        segments = _env_var_name_to_segments(name, env_prefix)
        parent = _get_parent_mapping(config, segments)
        leaf = segments[-1]
        dotted = ".".join(segments)

        if leaf not in parent:
            raise ConfigError(f"Unknown configuration key path: {dotted}")

        # Pydantic handles type coercion/validation later.
        parent[leaf] = value


def _resolve_relative_paths(config: MutableMapping[str, Any], base_dir: Path) -> None:
    for key_path in _PATH_KEYS:
        cur: Any = config
        for segment in key_path[:-1]:
            cur = cur.get(segment) if isinstance(cur, dict) else None
        if not isinstance(cur, dict):
            continue
        value = cur.get(key_path[-1])
        if not isinstance(value, str) or not value.strip():
            continue
        cur[key_path[-1]] = str((base_dir / value).resolve())


def _fill_font_input_dir(config: MutableMapping[str, Any]) -> None:
    clean_icons = config.get("clean_icons")
    generate_fonts = config.get("generate_fonts")
    if not isinstance(clean_icons, dict) or not isinstance(generate_fonts, dict):
        return
    if not generate_fonts.get("input_dir") and clean_icons.get("icons_cleaned_dir"):
        generate_fonts["input_dir"] = clean_icons["icons_cleaned_dir"]


class YamlConfigLoader:
    async def load(self, request: ConfigLoadRequest = ConfigLoadRequest()) -> ToolConfig:
        yaml_path = Path(request.yaml_path).resolve()
        config = _read_yaml_config(yaml_path)

        if request.dotenv_path is not None:
            _load_dotenv_if_present(Path(request.dotenv_path))

        _apply_env_overrides(config, request.env_prefix)
        _resolve_relative_paths(config, yaml_path.parent)
        _fill_font_input_dir(config)
        return ToolConfig.model_validate(config)


def build_config_from_flags(
    *,
    input_dir: str,
    output_dir: str,
    name: str,
    prefix: str = "i",
    selector: str = "icon",
    tag: str = "i",
    fonts_url: str = "./",
    template_css: Optional[str] = None,
    cwd: Optional[Path] = None,
) -> ToolConfig:
    """Build the tool configuration used when no config file is given."""
    base = cwd or Path.cwd()
    resolved_input = (base / input_dir).resolve()
    resolved_output = (base / output_dir).resolve()
    cleaned_dir = resolved_output / CLEANED_DIR_NAME
    template = str((base / template_css).resolve()) if template_css else ""

    return ToolConfig(
        clean_icons=CleanIconsOptions(
            icons_src_dir=str(resolved_input),
            icons_cleaned_dir=str(cleaned_dir),
            svg_fixer=SvgFixerOptions(
                show_progress_bar=True,
                throw_if_destination_does_not_exist=False,
            ),
        ),
        generate_fonts=GenerateFontsOptions(
            name=name,
            input_dir=str(cleaned_dir),
            output_dir=str(resolved_output),
            font_types=("woff2", "woff"),
            asset_types=("css",),
            fonts_url=fonts_url,
            templates=FontTemplates(css=template),
            normalize=True,
            prefix=prefix,
            selector=selector,
            tag=tag,
        ),
    )
