from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Optional, Sequence

from stroke2font.build import BuildResult, IconFontBuilder
from stroke2font.config import YamlConfigLoader, build_config_from_flags
from stroke2font.config.models import ConfigLoadRequest, LoggingSettings, ToolConfig
from stroke2font.logging import init_logging
from stroke2font.templating import build_helper_registry
from stroke2font.transforms.font_generator import FontToolsFontGenerator
from stroke2font.transforms.svg_fixer import InkscapeSvgFixer

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stroke2font",
        description="Convert a directory of stroke SVG icons into an icon font and stylesheet.",
        epilog=(
            "Usage:\n"
            "  stroke2font --in <svgDir> --out <outputDir> --name <fontName> [options]\n"
            "  stroke2font --config <config.yaml>"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", default=None, help="Path to a YAML config file")
    parser.add_argument("--in", "--input", dest="input", default=None, help="Directory of source SVG icons")
    parser.add_argument("--out", "--output", dest="output", default=None, help="Directory for fonts and CSS")
    parser.add_argument("--name", default=None, help="Font family name")
    parser.add_argument("--prefix", default="i", help='CSS class prefix (default: "i")')
    parser.add_argument("--selector", default="icon", help='Base selector class (default: "icon")')
    parser.add_argument("--tag", default="i", help='Tag to target when selector isn\'t used (default: "i")')
    parser.add_argument("--fontsURL", dest="fonts_url", default="./", help='URL in CSS @font-face src (default: "./")')
    parser.add_argument("--templateCSS", dest="template_css", default=None, help="Path to a CSS Jinja2 template")
    return parser


async def _load_config(args: argparse.Namespace) -> ToolConfig:
    if args.config:
        loader = YamlConfigLoader()
        return await loader.load(ConfigLoadRequest(yaml_path=args.config))
    return build_config_from_flags(
        input_dir=args.input,
        output_dir=args.output,
        name=args.name,
        prefix=args.prefix,
        selector=args.selector,
        tag=args.tag,
        fonts_url=args.fonts_url,
        template_css=args.template_css,
    )


async def _run_build(args: argparse.Namespace) -> BuildResult:
    config = await _load_config(args)
    init_logging(config.logging)

    builder = IconFontBuilder(
        config=config,
        svg_fixer=InkscapeSvgFixer(inkscape_path=config.clean_icons.inkscape_path),
        font_generator=FontToolsFontGenerator(helpers=build_helper_registry()),
    )
    return await builder.build()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.config and not (args.input and args.output and args.name):
        parser.print_help()
        return 0

    init_logging(LoggingSettings())
    try:
        asyncio.run(_run_build(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
        return 1
    except Exception:
        logger.exception("Build failed.")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
