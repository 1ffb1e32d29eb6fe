from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

FontType = Literal["woff2", "woff", "ttf"]
AssetType = Literal["css"]


class FileRotationSettings(BaseModel):
    """
    Date-based rotation settings (daily).

    This maps cleanly to Python's standard library TimedRotatingFileHandler behavior.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    backup_count: int = 7


class FileLoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = ""
    rotation: FileRotationSettings = FileRotationSettings()


class LoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    level: str = "INFO"
    file: FileLoggingSettings = FileLoggingSettings()


class SvgFixerOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    show_progress_bar: bool = True
    throw_if_destination_does_not_exist: bool = False


class CleanIconsOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    icons_src_dir: str
    icons_cleaned_dir: str
    svg_fixer: SvgFixerOptions = SvgFixerOptions()

    # Inkscape executable used by the stroke-to-path fixer
    inkscape_path: str = "inkscape"


class FontTemplates(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    # Empty means the packaged default template
    css: str = ""


class GenerateFontsOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    # Defaults to the cleaned icons directory
    input_dir: str = ""
    output_dir: str
    font_types: Sequence[FontType] = ("woff2", "woff")
    asset_types: Sequence[AssetType] = ("css",)
    fonts_url: str = "./"
    templates: FontTemplates = FontTemplates()
    normalize: bool = True

    # CSS class naming
    prefix: str = "i"
    selector: str = "icon"
    tag: str = "i"

    start_codepoint: int = Field(default=0xF101, ge=0x20, le=0x10FFFF)


class BuildSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    # Compare SHA-256 of file bytes in addition to size and mtime
    content_hash: bool = False
    transform_timeout_seconds: Optional[float] = Field(default=None, gt=0)


class ToolConfig(BaseModel):
    """
    Effective build configuration after applying all precedence rules.

    Built either from a YAML config file or from command-line flags.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    clean_icons: CleanIconsOptions
    generate_fonts: GenerateFontsOptions
    logging: LoggingSettings = LoggingSettings()
    build: BuildSettings = BuildSettings()

    def effective_options(self) -> Dict[str, Any]:
        """Options whose change invalidates every cleaned SVG and the generated fonts."""
        return {
            "svg_fixer": self.clean_icons.svg_fixer.model_dump(mode="json"),
            "generate_fonts": self.generate_fonts.model_dump(
                mode="json",
                exclude={"input_dir", "output_dir"},
            ),
            "content_hash": self.build.content_hash,
        }


@dataclass(frozen=True, slots=True)
class ConfigLoadRequest:
    """
    Optional inputs for a configuration loader.

    Implementations may use these to control where configuration is read from.
    """

    yaml_path: str = "stroke2font.yaml"
    env_prefix: str = "STROKE2FONT__"
    dotenv_path: Optional[str] = ".env"
