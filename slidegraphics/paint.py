"""Pydantic v2 models for paints and strokes.

A paint is either a solid ``Color`` or a gradient. Solid paints map onto
native DrawingML fills; gradients are rasterized, so they also know how to
evaluate themselves over numpy coordinate grids.

Strokes carry a width in device units and an optional dash array. The
destination only knows a handful of preset dash styles, so dash arrays are
quantized into buckets by ``quantize_dash``.
"""

import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional, Union

import numpy as np
from pptx.dml.color import RGBColor
from pptx.enum.dml import MSO_LINE_DASH_STYLE
from pydantic import BaseModel, ConfigDict, Field, field_validator

from slidegraphics.units import DASH_LIMIT_DOT, DASH_LIMIT_NORMAL, hex_to_rgb


# ============================================================================
# Colors
# ============================================================================


class Color(BaseModel):
    """sRGB color with 8-bit channels and alpha."""

    model_config = ConfigDict(frozen=True)

    r: int = Field(ge=0, le=255)
    g: int = Field(ge=0, le=255)
    b: int = Field(ge=0, le=255)
    a: int = Field(default=255, ge=0, le=255, description="Alpha, 255 is opaque")

    @classmethod
    def from_hex(cls, value: str, alpha: int = 255) -> "Color":
        """Parse '#RRGGBB' (or 'RRGGBB')."""
        r, g, b = hex_to_rgb(value)
        return cls(r=r, g=g, b=b, a=alpha)

    @property
    def hex(self) -> str:
        """Upper-case 'RRGGBB' as written into DrawingML."""
        return f"{self.r:02X}{self.g:02X}{self.b:02X}"

    @property
    def rgb(self) -> RGBColor:
        return RGBColor(self.r, self.g, self.b)

    @property
    def opacity(self) -> float:
        return self.a / 255.0

    @property
    def luma(self) -> float:
        """Perceived brightness (ITU-R BT.601 weights)."""
        return 0.299 * self.r + 0.587 * self.g + 0.114 * self.b

    def is_opaque(self) -> bool:
        return self.a == 255

    def with_alpha(self, alpha: int) -> "Color":
        return self.model_copy(update={"a": alpha})

    def rgba(self) -> tuple[int, int, int, int]:
        return (self.r, self.g, self.b, self.a)


BLACK = Color(r=0, g=0, b=0)
WHITE = Color(r=255, g=255, b=255)


# ============================================================================
# Gradients
# ============================================================================


class CycleMethod(str, Enum):
    """How a gradient continues past its end points."""

    NO_CYCLE = "noCycle"
    REFLECT = "reflect"
    REPEAT = "repeat"


class GradientStop(BaseModel):
    """A colour at a fractional position along a gradient."""

    model_config = ConfigDict(frozen=True)

    position: float = Field(ge=0.0, le=1.0)
    color: Color


class _Gradient(BaseModel, ABC):
    """Shared stop handling; subclasses map points to a gradient parameter."""

    model_config = ConfigDict(frozen=True)

    stops: tuple[GradientStop, ...] = Field(min_length=2)
    cycle: CycleMethod = CycleMethod.NO_CYCLE

    @field_validator("stops")
    @classmethod
    def _sorted_stops(cls, stops: tuple[GradientStop, ...]) -> tuple[GradientStop, ...]:
        return tuple(sorted(stops, key=lambda s: s.position))

    @abstractmethod
    def parameter(self, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
        """Unclamped position along the gradient for each point."""

    def brighter_color(self) -> Color:
        """The brighter of the two end colours, used when a gradient strokes."""
        first, last = self.stops[0].color, self.stops[-1].color
        return first if first.luma >= last.luma else last

    def sample(self, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
        """RGBA uint8 colours for user-space coordinates, shape ``xs.shape + (4,)``."""
        t = self.parameter(xs, ys)
        if self.cycle is CycleMethod.REPEAT:
            t = np.mod(t, 1.0)
        elif self.cycle is CycleMethod.REFLECT:
            t = 1.0 - np.abs(np.mod(t, 2.0) - 1.0)
        else:
            t = np.clip(t, 0.0, 1.0)

        positions = np.array([s.position for s in self.stops])
        channels = np.array([s.color.rgba() for s in self.stops], dtype=float)
        out = np.empty(t.shape + (4,), dtype=np.uint8)
        for c in range(4):
            out[..., c] = np.round(np.interp(t, positions, channels[:, c])).astype(np.uint8)
        return out


class LinearGradient(_Gradient):
    """Gradient along the line from ``start`` to ``end`` (user space)."""

    type: str = "linear"
    start: tuple[float, float]
    end: tuple[float, float]

    @classmethod
    def two_color(
        cls,
        x1: float,
        y1: float,
        color1: Color,
        x2: float,
        y2: float,
        color2: Color,
        cyclic: bool = False,
    ) -> "LinearGradient":
        return cls(
            start=(x1, y1),
            end=(x2, y2),
            stops=(GradientStop(position=0.0, color=color1), GradientStop(position=1.0, color=color2)),
            cycle=CycleMethod.REFLECT if cyclic else CycleMethod.NO_CYCLE,
        )

    def parameter(self, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
        dx = self.end[0] - self.start[0]
        dy = self.end[1] - self.start[1]
        length_sq = dx * dx + dy * dy
        if length_sq == 0.0:
            return np.zeros_like(xs, dtype=float)
        return ((xs - self.start[0]) * dx + (ys - self.start[1]) * dy) / length_sq


class RadialGradient(_Gradient):
    """Gradient from ``center`` outwards to ``radius`` (user space)."""

    type: str = "radial"
    center: tuple[float, float]
    radius: float = Field(gt=0)

    def parameter(self, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
        return np.hypot(xs - self.center[0], ys - self.center[1]) / self.radius


Paint = Union[Color, LinearGradient, RadialGradient]


def is_solid(paint: Paint) -> bool:
    return isinstance(paint, Color)


def solid_color(paint: Paint) -> Color:
    """A single colour standing in for the paint."""
    if isinstance(paint, Color):
        return paint
    return paint.brighter_color()


# ============================================================================
# Strokes
# ============================================================================


class LineCap(str, Enum):
    """End caps, valued as DrawingML ``a:ln/@cap``."""

    BUTT = "flat"
    ROUND = "rnd"
    SQUARE = "sq"


class LineJoin(str, Enum):
    """Corner joins, valued as the DrawingML element name."""

    MITER = "miter"
    ROUND = "round"
    BEVEL = "bevel"


class Stroke(BaseModel):
    """Pen used by draw operations."""

    model_config = ConfigDict(frozen=True)

    width: float = Field(default=1.0, ge=0, description="Line width in device units")
    cap: LineCap = LineCap.ROUND
    join: LineJoin = LineJoin.ROUND
    miter_limit: float = Field(default=10.0, ge=1.0)
    dash: Optional[tuple[float, ...]] = Field(default=None, description="Alternating on/off lengths")
    dash_phase: float = 0.0

    def with_width(self, width: float) -> "Stroke":
        return self.model_copy(update={"width": width})


class DashBucket(str, Enum):
    """Preset dash styles a dash array can be quantized to."""

    SOLID = "solid"
    ROUND_DOT = "roundDot"
    SQUARE_DOT = "squareDot"
    DASH = "dash"
    DASH_DOT = "dashDot"
    LONG_DASH_DOT = "longDashDot"
    LONG_DASH_DOT_DOT = "longDashDotDot"


# Map dash buckets to MSO
DASH_STYLE_MAP: dict[DashBucket, MSO_LINE_DASH_STYLE] = {
    DashBucket.SOLID: MSO_LINE_DASH_STYLE.SOLID,
    DashBucket.ROUND_DOT: MSO_LINE_DASH_STYLE.ROUND_DOT,
    DashBucket.SQUARE_DOT: MSO_LINE_DASH_STYLE.SQUARE_DOT,
    DashBucket.DASH: MSO_LINE_DASH_STYLE.DASH,
    DashBucket.DASH_DOT: MSO_LINE_DASH_STYLE.DASH_DOT,
    DashBucket.LONG_DASH_DOT: MSO_LINE_DASH_STYLE.LONG_DASH_DOT,
    DashBucket.LONG_DASH_DOT_DOT: MSO_LINE_DASH_STYLE.DASH_DOT_DOT,
}


def quantize_dash(dash: Optional[tuple[float, ...]], document_width: float) -> DashBucket:
    """Pick the preset dash style closest to a dash array.

    Two-element arrays are classified by the first dash length relative to the
    document width; longer arrays by their element count.

    Args:
        dash: Alternating on/off lengths, or None for a solid line.
        document_width: Width of the target document in device units.

    Returns:
        The matching DashBucket.
    """
    if not dash or len(dash) < 2:
        return DashBucket.SOLID
    if len(dash) == 2:
        ratio = dash[0] / document_width if document_width > 0 else math.inf
        if ratio < DASH_LIMIT_DOT:
            return DashBucket.ROUND_DOT
        if ratio < DASH_LIMIT_NORMAL:
            return DashBucket.SQUARE_DOT
        return DashBucket.DASH
    if len(dash) == 3:
        return DashBucket.DASH_DOT
    if len(dash) == 4:
        return DashBucket.LONG_DASH_DOT
    return DashBucket.LONG_DASH_DOT_DOT
