"""
text_measure.py — Font metrics for laying out text boxes.

The slide shows text in a text box whose size and position the graphics
context must compute itself. The metrics that drive that layout (ascent,
descent, leading, advance width, visual bounds) come from a provider:

- PillowTextMetrics measures with real TrueType fonts via Pillow
- ApproximateTextMetrics uses fixed em fractions (deterministic, font-free)

All values are in device units (points) for the font's nominal size.
"""

import logging
import os
import platform
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

from PIL import ImageFont
from pydantic import BaseModel, ConfigDict, Field

from slidegraphics.geometry.shapes import Rect
from slidegraphics.paint import Color
from slidegraphics.units import DEFAULT_FONT_FAMILY, DEFAULT_FONT_SIZE_PT

logger = logging.getLogger(__name__)

# =============================================================================
# FONT MODELS
# =============================================================================


class Font(BaseModel):
    """Logical font: family, size in points, style and a positional offset."""

    model_config = ConfigDict(frozen=True)

    family: str = DEFAULT_FONT_FAMILY
    size: float = Field(default=DEFAULT_FONT_SIZE_PT, gt=0)
    bold: bool = False
    italic: bool = False
    offset_x: float = Field(default=0.0, description="Baseline shift applied to rich text runs")
    offset_y: float = 0.0

    def derive(self, **changes) -> "Font":
        return self.model_copy(update=changes)


class StyledRun(BaseModel):
    """A span of rich text; unset attributes inherit from the context."""

    model_config = ConfigDict(frozen=True)

    text: str
    font: Optional[Font] = None
    color: Optional[Color] = None


@dataclass(frozen=True)
class LineMetrics:
    """Vertical metrics of a font, in device units."""
    ascent: float
    descent: float
    leading: float

    @property
    def height(self) -> float:
        return self.ascent + self.descent + self.leading


# =============================================================================
# FONT LOADING
# =============================================================================

# Font file mapping
FONT_MAP = {
    'Calibri': 'calibri.ttf',
    'Calibri Bold': 'calibrib.ttf',
    'Calibri Italic': 'calibrii.ttf',
    'Calibri Bold Italic': 'calibriz.ttf',
    'Arial': 'arial.ttf',
    'Arial Bold': 'arialbd.ttf',
    'Arial Italic': 'ariali.ttf',
    'Arial Bold Italic': 'arialbi.ttf',
    'Segoe UI': 'segoeui.ttf',
    'DejaVu Sans': 'DejaVuSans.ttf',
    'DejaVu Sans Bold': 'DejaVuSans-Bold.ttf',
    'DejaVu Sans Italic': 'DejaVuSans-Oblique.ttf',
    'DejaVu Sans Bold Italic': 'DejaVuSans-BoldOblique.ttf',
}

# Fallback font (shipped with most Linux distributions)
FALLBACK_FONT_FILE = 'DejaVuSans.ttf'

# Cache loaded fonts to avoid repeated disk access
_font_cache: Dict[Tuple[str, int, bool, bool, Optional[str]], ImageFont.ImageFont] = {}


def font_file(family: str, bold: bool = False, italic: bool = False) -> str:
    """Font file for a family and style, dropping styles the map lacks."""
    styles = []
    if bold and italic:
        styles.append(' Bold Italic')
    if bold:
        styles.append(' Bold')
    if italic:
        styles.append(' Italic')
    for style in styles:
        if f"{family}{style}" in FONT_MAP:
            return FONT_MAP[f"{family}{style}"]
    return FONT_MAP.get(family, FALLBACK_FONT_FILE)


def _system_font_dirs() -> list:
    if platform.system() == 'Windows':
        return [Path(os.environ.get('WINDIR', 'C:/Windows')) / 'Fonts']
    if platform.system() == 'Darwin':
        return [Path('/Library/Fonts'), Path('/System/Library/Fonts/Supplemental')]
    return [
        Path('/usr/share/fonts/truetype/dejavu'),
        Path('/usr/share/fonts/TTF'),
        Path('/usr/share/fonts/dejavu'),
    ]


def get_font(
    family: str,
    size_px: int,
    bold: bool = False,
    italic: bool = False,
    font_dir: Optional[Path] = None,
) -> ImageFont.ImageFont:
    """
    Load a Pillow font for measurement or rasterization. Falls back gracefully.

    Args:
        family: Font family name (e.g., 'Calibri', 'Arial')
        size_px: Font size in pixels
        bold: Whether to use the bold variant
        italic: Whether to use the italic variant
        font_dir: Extra directory searched before the system font folders

    Returns:
        PIL font object ready for measurement
    """
    size_px = max(1, int(size_px))
    cache_key = (family, size_px, bold, italic, str(font_dir) if font_dir else None)
    if cache_key in _font_cache:
        return _font_cache[cache_key]

    filename = font_file(family, bold, italic)

    search_dirs = ([Path(font_dir)] if font_dir else []) + _system_font_dirs()
    candidates = [d / filename for d in search_dirs] + [d / FALLBACK_FONT_FILE for d in search_dirs]

    font = None
    for path in candidates:
        if not path.exists():
            continue
        try:
            font = ImageFont.truetype(str(path), size_px)
            break
        except OSError as e:
            logger.debug(f"Could not load font {path}: {e}")

    if font is None:
        # Pillow's bundled default font as last resort
        logger.debug(f"No font file for {family!r}, using Pillow default")
        font = ImageFont.load_default(size=size_px)

    _font_cache[cache_key] = font
    return font


def clear_font_cache():
    """Clear the font cache (useful for testing)."""
    _font_cache.clear()


# =============================================================================
# METRICS PROVIDERS
# =============================================================================


class TextMetrics(ABC):
    """Source of glyph metrics used by text layout."""

    @abstractmethod
    def line_metrics(self, font: Font) -> LineMetrics:
        ...

    @abstractmethod
    def advance(self, text: str, font: Font) -> float:
        """Horizontal pen advance after drawing ``text``."""

    @abstractmethod
    def visual_bounds(self, text: str, font: Font) -> Rect:
        """Ink bounds relative to the baseline origin (y grows downward)."""

    def char_width(self, char: str, font: Font) -> float:
        return self.advance(char, font)


class PillowTextMetrics(TextMetrics):
    """Metrics measured from TrueType fonts through Pillow."""

    def __init__(self, font_dir: Optional[Path] = None):
        self.font_dir = font_dir

    def _load(self, font: Font) -> Tuple[ImageFont.ImageFont, float]:
        size_px = max(1, round(font.size))
        pil_font = get_font(font.family, size_px, font.bold, font.italic, self.font_dir)
        return pil_font, font.size / size_px

    def line_metrics(self, font: Font) -> LineMetrics:
        pil_font, factor = self._load(font)
        if isinstance(pil_font, ImageFont.FreeTypeFont):
            ascent, descent = pil_font.getmetrics()
            # FreeType reports the line height including the line gap
            height = getattr(pil_font.font, "height", ascent + descent)
            leading = max(0, height - ascent - descent)
            return LineMetrics(ascent * factor, descent * factor, leading * factor)
        left, top, right, bottom = pil_font.getbbox("Xg")
        return LineMetrics((bottom - top) * factor, 0.0, 0.0)

    def advance(self, text: str, font: Font) -> float:
        if not text:
            return 0.0
        pil_font, factor = self._load(font)
        return pil_font.getlength(text) * factor

    def visual_bounds(self, text: str, font: Font) -> Rect:
        if not text:
            return Rect(0.0, 0.0, 0.0, 0.0)
        pil_font, factor = self._load(font)
        if isinstance(pil_font, ImageFont.FreeTypeFont):
            left, top, right, bottom = pil_font.getbbox(text, anchor="ls")
        else:
            left, top, right, bottom = pil_font.getbbox(text)
            ascent = self.line_metrics(font).ascent / factor
            top, bottom = top - ascent, bottom - ascent
        return Rect(left * factor, top * factor, (right - left) * factor, (bottom - top) * factor)


class ApproximateTextMetrics(TextMetrics):
    """Font-independent metrics from fixed fractions of the em size."""

    ASCENT = 0.75
    DESCENT = 0.25
    CAP_HEIGHT = 0.7
    ADVANCE = 0.5

    def line_metrics(self, font: Font) -> LineMetrics:
        return LineMetrics(font.size * self.ASCENT, font.size * self.DESCENT, 0.0)

    def advance(self, text: str, font: Font) -> float:
        return len(text) * font.size * self.ADVANCE

    def visual_bounds(self, text: str, font: Font) -> Rect:
        cap = font.size * self.CAP_HEIGHT
        return Rect(0.0, -cap, self.advance(text, font), cap)


def create_text_metrics(kind: str, font_dir: Optional[Path] = None) -> TextMetrics:
    """Build the metrics provider named by the ``font_metrics`` setting."""
    if kind == "approximate":
        return ApproximateTextMetrics()
    return PillowTextMetrics(font_dir)
