"""
units.py — Device-unit conversions and rendering constants.

One device unit is one typographic point. Everything the graphics context
measures (shape anchors, stroke widths, font sizes) is in points and is only
converted to EMU when a python-pptx object is created.

EMU = English Metric Units (914400 EMUs per inch, 12700 per point)
"""

import math

from pptx.util import Emu

# =============================================================================
# UNIT CONVERSIONS
# =============================================================================

EMU_PER_INCH = 914400
EMU_PER_PT = 12700


def pt_to_emu(pt: float) -> Emu:
    """Convert device units (points) to EMUs, rounding to the nearest EMU."""
    return Emu(int(round(pt * EMU_PER_PT)))


def emu_to_pt(emu: int) -> float:
    """Convert EMUs to device units (points)."""
    return emu / EMU_PER_PT


# =============================================================================
# GEOMETRY TOLERANCES
# =============================================================================

# Rotations below one degree are treated as unrotated text
TEXT_MIN_ESCAPE = math.pi / 180

# Distance under which two coordinates are considered equal
ASSUME_ZERO = 0.01

# Bounds smaller than this are widened before clip tests
MIN_CLIP_EXTENT = 0.1

# Shapes smaller than this in both dimensions can be rejected
MIN_SHAPE_EXTENT = 1.0

# =============================================================================
# DASH QUANTIZATION (dash length relative to document width)
# =============================================================================

DASH_LIMIT_DOT = 0.5 / 348
DASH_LIMIT_NORMAL = 4 / 348

# =============================================================================
# DRAWINGML FIXED-POINT SCALES
# =============================================================================

# Percentages are stored in thousandths of a percent
DML_PERCENT = 100000
# Angles are stored in 60000ths of a degree
DML_ANGLE = 60000
# python-pptx stores adjustment values divided by this
PPTX_ADJUSTMENT_SCALE = 100000

# =============================================================================
# FONT DEFAULTS
# =============================================================================

DEFAULT_FONT_FAMILY = "Calibri"
FALLBACK_FONT_FAMILY = "DejaVu Sans"
DEFAULT_FONT_SIZE_PT = 12.0
TITLE_FONT_SIZE_PT = 28
TITLE_HEIGHT_PT = 48.0

# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp a value between min and max."""
    return max(min_val, min(max_val, value))


def hex_to_rgb(hex_color: str) -> tuple:
    """Convert hex color string to RGB tuple (0-255)."""
    hex_color = hex_color.lstrip('#')
    return tuple(int(hex_color[i:i+2], 16) for i in (0, 2, 4))
