from __future__ import annotations

import asyncio
import hashlib
import io
import logging
import threading
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from fontTools.fontBuilder import FontBuilder
from fontTools.pens.cu2quPen import Cu2QuPen
from fontTools.pens.transformPen import TransformPen
from fontTools.pens.ttGlyphPen import TTGlyphPen
from fontTools.ttLib import TTFont
from svgpathtools import Arc, CubicBezier, Line, QuadraticBezier, parse_path
from svgpathtools import Path as SvgPath

from stroke2font.build_cache.fingerprints import list_input_files
from stroke2font.config.models import GenerateFontsOptions
from stroke2font.errors import FontGenerationError
from stroke2font.templating import CssRenderer, build_helper_registry, find_class_name_collisions
from stroke2font.transforms.interfaces import FontGenerationResult, FontGenerator

logger = logging.getLogger(__name__)

UNITS_PER_EM = 1000
ASCENT = 850
DESCENT = 150

_FLAVORS: Dict[str, Optional[str]] = {"woff2": "woff2", "woff": "woff", "ttf": None}
_CSS_FORMATS: Dict[str, str] = {"woff2": "woff2", "woff": "woff", "ttf": "truetype"}


@dataclass(slots=True)
class IconOutline:
    name: str
    path: SvgPath
    view_box: Tuple[float, float, float, float]


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _parse_length(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    raw = value.strip().lower().removesuffix("px")
    try:
        return float(raw)
    except ValueError:
        return None


def _read_view_box(root: ET.Element) -> Tuple[float, float, float, float]:
    raw = root.attrib.get("viewBox")
    if raw:
        parts = raw.replace(",", " ").split()
        if len(parts) == 4:
            min_x, min_y, width, height = (float(p) for p in parts)
            if width > 0 and height > 0:
                return min_x, min_y, width, height
    width = _parse_length(root.attrib.get("width")) or 24.0
    height = _parse_length(root.attrib.get("height")) or 24.0
    return 0.0, 0.0, width, height


def load_icon_outline(svg_path: Path) -> IconOutline:
    try:
        root = ET.parse(svg_path).getroot()
    except ET.ParseError as e:
        raise FontGenerationError(f"Invalid SVG file: {svg_path}") from e

    segments = []
    for element in root.iter():
        if _local_name(element.tag) != "path":
            continue
        d = element.attrib.get("d", "").strip()
        if not d:
            continue
        try:
            segments.extend(parse_path(d))
        except Exception as e:
            raise FontGenerationError(f"Invalid path data in {svg_path.name}") from e

    if not segments:
        raise FontGenerationError(f"SVG has no drawable paths: {svg_path}")
    return IconOutline(name=svg_path.stem, path=SvgPath(*segments), view_box=_read_view_box(root))


def _draw_path_to_pen(path: SvgPath, pen: TransformPen) -> None:
    subpath_start = None
    current_point = None

    for segment in path:
        start = (segment.start.real, segment.start.imag)
        end = (segment.end.real, segment.end.imag)

        if current_point is None or start != current_point:
            if subpath_start is not None:
                pen.closePath()
            pen.moveTo(start)
            subpath_start = start

        if isinstance(segment, Line):
            pen.lineTo(end)
        elif isinstance(segment, QuadraticBezier):
            pen.qCurveTo((segment.control.real, segment.control.imag), end)
        elif isinstance(segment, CubicBezier):
            pen.curveTo(
                (segment.control1.real, segment.control1.imag),
                (segment.control2.real, segment.control2.imag),
                end,
            )
        elif isinstance(segment, Arc):
            for cubic in segment.as_cubic_curves():
                pen.curveTo(
                    (cubic.control1.real, cubic.control1.imag),
                    (cubic.control2.real, cubic.control2.imag),
                    (cubic.end.real, cubic.end.imag),
                )
        else:
            raise FontGenerationError(f"Unsupported path segment: {type(segment).__name__}")

        current_point = end
        if subpath_start is not None and end == subpath_start:
            pen.closePath()
            subpath_start = None
            current_point = None

    # Glyph contours are always closed
    if subpath_start is not None:
        pen.closePath()


def _glyph_transform(outline: IconOutline, *, normalize: bool) -> Tuple[float, float, float, int]:
    """Return (scale, dx, dy, advance) mapping SVG user space onto the em square."""
    if normalize:
        x_min, x_max, y_min, y_max = outline.path.bbox()
        height = y_max - y_min
        width = x_max - x_min
        extent = height if height > 0 else width
        if extent <= 0:
            raise FontGenerationError(f"Icon has an empty outline: {outline.name}")
        scale = UNITS_PER_EM / extent
        advance = max(1, round(width * scale))
        return scale, -x_min * scale, ASCENT + y_min * scale, advance

    min_x, min_y, width, height = outline.view_box
    scale = UNITS_PER_EM / height
    advance = max(1, round(width * scale))
    return scale, -min_x * scale, ASCENT + min_y * scale, advance


def _build_glyph(outline: IconOutline, *, normalize: bool) -> Tuple[Any, int]:
    scale, dx, dy, advance = _glyph_transform(outline, normalize=normalize)
    tt_pen = TTGlyphPen(None)
    cu2qu_pen = Cu2QuPen(tt_pen, max_err=1.0, reverse_direction=False)
    transform_pen = TransformPen(cu2qu_pen, (scale, 0, 0, -scale, dx, dy))
    _draw_path_to_pen(outline.path, transform_pen)
    return tt_pen.glyph(), advance


def _glyph_name(codepoint: int) -> str:
    if codepoint <= 0xFFFF:
        return f"uni{codepoint:04X}"
    return f"u{codepoint:05X}"


def assign_codepoints(names: list[str], start_codepoint: int) -> Dict[str, int]:
    return {name: start_codepoint + index for index, name in enumerate(sorted(names))}


def check_icon_names(file_names: list[str]) -> None:
    """Reject icon sets where two files would share a glyph or a CSS class."""
    by_stem: Dict[str, list[str]] = {}
    for file_name in file_names:
        by_stem.setdefault(Path(file_name).stem, []).append(file_name)
    for stem, members in by_stem.items():
        if len(members) > 1:
            raise FontGenerationError(f"Icon files share the name {stem!r}: {', '.join(members)}")

    collisions = find_class_name_collisions(by_stem)
    if collisions:
        detail = "; ".join(f"{class_name!r}: {', '.join(stems)}" for class_name, stems in collisions.items())
        raise FontGenerationError(f"Icons would share a CSS class name. {detail}")


def compile_font(
    outlines: list[IconOutline],
    codepoints: Mapping[str, int],
    *,
    family_name: str,
    normalize: bool,
) -> bytes:
    glyph_order = [".notdef"]
    glyphs = {".notdef": TTGlyphPen(None).glyph()}
    h_metrics: Dict[str, Tuple[int, int]] = {".notdef": (UNITS_PER_EM, 0)}
    cmap: Dict[int, str] = {}

    for outline in outlines:
        codepoint = codepoints[outline.name]
        glyph_name = _glyph_name(codepoint)
        glyph, advance = _build_glyph(outline, normalize=normalize)
        glyph_order.append(glyph_name)
        glyphs[glyph_name] = glyph
        h_metrics[glyph_name] = (advance, 0)
        cmap[codepoint] = glyph_name

    ps_name = "".join(ch for ch in family_name if ch.isalnum() or ch in "-_") or "IconFont"
    fb = FontBuilder(UNITS_PER_EM, isTTF=True)
    fb.setupGlyphOrder(glyph_order)
    fb.setupCharacterMap(cmap)
    fb.setupGlyf(glyphs)
    fb.setupHorizontalMetrics(h_metrics)
    fb.setupHorizontalHeader(ascent=ASCENT, descent=-DESCENT)
    fb.setupOS2(
        sTypoAscender=ASCENT,
        sTypoDescender=-DESCENT,
        sTypoLineGap=0,
        usWinAscent=ASCENT,
        usWinDescent=DESCENT,
    )
    fb.setupNameTable({
        "familyName": family_name,
        "styleName": "Regular",
        "uniqueFontIdentifier": f"{ps_name}-Regular",
        "fullName": f"{family_name} Regular",
        "psName": f"{ps_name}-Regular",
        "version": "1.0",
    })
    fb.setupPost()
    fb.setupMaxp()

    buffer = io.BytesIO()
    fb.save(buffer)
    return buffer.getvalue()


def _font_url(fonts_url: str, filename: str) -> str:
    if fonts_url and not fonts_url.endswith("/"):
        fonts_url = f"{fonts_url}/"
    return f"{fonts_url}{filename}"


class FontToolsFontGenerator(FontGenerator):
    """Builds glyphs from cleaned SVG outlines with fontTools and renders the CSS template."""

    def __init__(self, *, helpers: Optional[Mapping[str, Callable[..., Any]]] = None) -> None:
        self._helpers = dict(helpers) if helpers is not None else build_helper_registry()

    async def generate(self, options: GenerateFontsOptions) -> FontGenerationResult:
        # The worker thread cannot be interrupted; on cancellation it stops before its next write.
        cancelled = threading.Event()
        try:
            return await asyncio.to_thread(self._generate_sync, options, cancelled)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    def _generate_sync(
        self,
        options: GenerateFontsOptions,
        cancelled: Optional[threading.Event] = None,
    ) -> FontGenerationResult:
        def _check_cancelled() -> None:
            if cancelled is not None and cancelled.is_set():
                raise FontGenerationError(f"Font generation cancelled. name={options.name}")

        input_dir = Path(options.input_dir)
        output_dir = Path(options.output_dir)
        if not input_dir.is_dir():
            raise FontGenerationError(f"Font input directory does not exist: {input_dir}")

        names = list_input_files(input_dir)
        if not names:
            logger.warning("No SVG icons found, generating an empty font. input_dir=%s", input_dir)
        check_icon_names(names)

        outlines = [load_icon_outline(input_dir / name) for name in names]
        codepoints = assign_codepoints([outline.name for outline in outlines], options.start_codepoint)
        ttf_bytes = compile_font(
            outlines,
            codepoints,
            family_name=options.name,
            normalize=options.normalize,
        )

        _check_cancelled()
        output_dir.mkdir(parents=True, exist_ok=True)
        result = FontGenerationResult(codepoints=codepoints)
        font_sources: list[str] = []
        for font_type in options.font_types:
            _check_cancelled()
            target = output_dir / f"{options.name}.{font_type}"
            font = TTFont(io.BytesIO(ttf_bytes))
            font.flavor = _FLAVORS[font_type]
            font.save(str(target))
            result.written_files.append(target)

            digest = hashlib.md5(target.read_bytes()).hexdigest()
            url = _font_url(options.fonts_url, target.name)
            font_sources.append(f'url("{url}?{digest}") format("{_CSS_FORMATS[font_type]}")')
            logger.info("Font written. path=%s glyphs=%d", target, len(codepoints))

        if "css" in options.asset_types:
            template_path = Path(options.templates.css) if options.templates.css else None
            renderer = CssRenderer(helpers=self._helpers, template_path=template_path)
            css = renderer.render(
                {
                    "name": options.name,
                    "prefix": options.prefix,
                    "selector": options.selector,
                    "tag": options.tag,
                    "fonts_url": options.fonts_url,
                    "font_src": ",\n         ".join(font_sources),
                    "codepoints": codepoints,
                }
            )
            _check_cancelled()
            css_path = output_dir / f"{options.name}.css"
            css_path.write_text(css, encoding="utf-8")
            result.written_files.append(css_path)
            logger.info("Stylesheet written. path=%s template=%s", css_path, renderer.template_path)

        return result
