"""
shapes.py — Geometric primitives consumed by the graphics context.

Every primitive can report its bounds, convert itself to a general Path and
map itself through an AffineTransform. Transforms keep the primitive's kind
where the destination format can still express it natively:

- Line stays a Line under any affine transform
- Rect, Ellipse, RoundRect and Arc keep their kind under axis-aligned
  transforms (translate, scale, flip); anything else becomes a Path

Arc angles are in degrees, counter-clockwise on screen, measured so that 45
degrees always points at the upper-right corner of the framing rectangle.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from slidegraphics.geometry.affine import AffineTransform

Point = Tuple[float, float]

# Cubic Bezier constant for quarter circles
KAPPA = 0.5522847498307936

# Device units per flattened segment along a curve's control polygon
FLATTEN_STEP = 2.0
MIN_CURVE_STEPS = 4
MAX_CURVE_STEPS = 64


class SegmentType(Enum):
    """Path segment operators."""
    MOVE_TO = "moveTo"
    LINE_TO = "lineTo"
    QUAD_TO = "quadTo"
    CURVE_TO = "curveTo"
    CLOSE = "close"


class WindingRule(Enum):
    """Fill rule for self-overlapping paths."""
    EVEN_ODD = "evenOdd"
    NON_ZERO = "nonZero"


class ArcType(Enum):
    """How an arc outline is closed."""
    OPEN = "open"      # Just the curve
    CHORD = "chord"    # Curve plus a straight chord
    PIE = "pie"        # Curve plus two radii to the centre


class Shape(ABC):
    """Base class for all drawable geometry."""

    @abstractmethod
    def bounds(self) -> "Rect":
        """Axis-aligned bounding box."""

    @abstractmethod
    def to_path(self) -> "Path":
        """Equivalent general path."""

    def transformed(self, transform: AffineTransform) -> "Shape":
        return self.to_path().transformed(transform)


# =============================================================================
# RECTANGLE
# =============================================================================

@dataclass(frozen=True)
class Rect(Shape):
    """Axis-aligned rectangle given by its top-left corner and size."""
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_points(cls, points: Iterable[Sequence[float]]) -> "Rect":
        """Smallest rectangle enclosing the given points."""
        pts = np.asarray(list(points), dtype=float).reshape(-1, 2)
        if len(pts) == 0:
            return cls(0.0, 0.0, 0.0, 0.0)
        min_x, min_y = pts.min(axis=0)
        max_x, max_y = pts.max(axis=0)
        return cls(float(min_x), float(min_y), float(max_x - min_x), float(max_y - min_y))

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Point:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def corners(self) -> List[Point]:
        """Corners clockwise on screen, starting top-left."""
        return [
            (self.min_x, self.min_y),
            (self.max_x, self.min_y),
            (self.max_x, self.max_y),
            (self.min_x, self.max_y),
        ]

    def bounds(self) -> "Rect":
        return self

    def to_path(self) -> "Path":
        return Path.from_points(self.corners(), closed=True)

    def transformed(self, transform: AffineTransform) -> Shape:
        if transform.is_axis_aligned():
            return Rect.from_points(transform.transform_points(self.corners()))
        return self.to_path().transformed(transform)

    def translated(self, dx: float, dy: float) -> "Rect":
        return Rect(self.x + dx, self.y + dy, self.width, self.height)

    def widened(self, min_extent: float) -> "Rect":
        """Grow each side to at least ``min_extent``, keeping the top-left corner."""
        return Rect(self.x, self.y, max(self.width, min_extent), max(self.height, min_extent))

    def union(self, other: "Rect") -> "Rect":
        return Rect.from_points(self.corners() + other.corners())

    def int_bounds(self) -> "Rect":
        """Smallest rectangle with integer coordinates that encloses this one."""
        x0, y0 = math.floor(self.min_x), math.floor(self.min_y)
        x1, y1 = math.ceil(self.max_x), math.ceil(self.max_y)
        return Rect(float(x0), float(y0), float(x1 - x0), float(y1 - y0))


# =============================================================================
# LINE
# =============================================================================

@dataclass(frozen=True)
class Line(Shape):
    """Straight segment between two points."""
    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def start(self) -> Point:
        return (self.x1, self.y1)

    @property
    def end(self) -> Point:
        return (self.x2, self.y2)

    def length(self) -> float:
        return math.hypot(self.x2 - self.x1, self.y2 - self.y1)

    def bounds(self) -> Rect:
        return Rect.from_points([self.start, self.end])

    def to_path(self) -> "Path":
        return Path.from_points([self.start, self.end], closed=False)

    def transformed(self, transform: AffineTransform) -> Shape:
        (x1, y1), (x2, y2) = transform.transform_points([self.start, self.end])
        return Line(x1, y1, x2, y2)


# =============================================================================
# ELLIPSE, ROUND RECTANGLE, ARC
# =============================================================================

def _ellipse_segments(
    builder: "PathBuilder",
    cx: float,
    cy: float,
    rx: float,
    ry: float,
    start: float,
    extent: float,
    move: bool,
) -> None:
    """Append cubic segments for an elliptical arc (angles in degrees)."""
    pieces = max(1, int(math.ceil(abs(extent) / 90.0 - 1e-9)))
    step = math.radians(extent) / pieces
    k = 4.0 / 3.0 * math.tan(step / 4.0)
    theta = math.radians(start)

    def to_device(u: float, v: float) -> Point:
        return (cx + rx * u, cy - ry * v)

    if move:
        builder.move_to(*to_device(math.cos(theta), math.sin(theta)))
    else:
        builder.line_to(*to_device(math.cos(theta), math.sin(theta)))
    for _ in range(pieces):
        nxt = theta + step
        c0, s0 = math.cos(theta), math.sin(theta)
        c1, s1 = math.cos(nxt), math.sin(nxt)
        builder.curve_to(
            *to_device(c0 - k * s0, s0 + k * c0),
            *to_device(c1 + k * s1, s1 - k * c1),
            *to_device(c1, s1),
        )
        theta = nxt


def _flip_arc_angles(start: float, extent: float, sx: float, sy: float) -> Tuple[float, float]:
    """Map arc angles through an axis-aligned scale with the given signs."""
    if sx < 0 and sy < 0:
        return start + 180.0, extent
    if sx < 0:
        return 180.0 - start, -extent
    if sy < 0:
        return -start, -extent
    return start, extent


@dataclass(frozen=True)
class Ellipse(Shape):
    """Ellipse inscribed in a frame rectangle."""
    x: float
    y: float
    width: float
    height: float

    @property
    def frame(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)

    def bounds(self) -> Rect:
        return self.frame

    def to_path(self) -> "Path":
        cx, cy = self.frame.center
        builder = PathBuilder()
        _ellipse_segments(builder, cx, cy, self.width / 2, self.height / 2, 0.0, 360.0, True)
        builder.close()
        return builder.build()

    def transformed(self, transform: AffineTransform) -> Shape:
        if transform.is_axis_aligned():
            r = self.frame.transformed(transform)
            return Ellipse(r.x, r.y, r.width, r.height)
        return self.to_path().transformed(transform)


@dataclass(frozen=True)
class RoundRect(Shape):
    """Rectangle with elliptical corners; arc sizes are corner diameters."""
    x: float
    y: float
    width: float
    height: float
    arc_width: float
    arc_height: float

    @property
    def frame(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)

    def bounds(self) -> Rect:
        return self.frame

    def to_path(self) -> "Path":
        rx = min(abs(self.arc_width), self.width) / 2
        ry = min(abs(self.arc_height), self.height) / 2
        x0, y0 = self.x, self.y
        x1, y1 = self.x + self.width, self.y + self.height
        builder = PathBuilder()
        builder.move_to(x0 + rx, y0)
        builder.line_to(x1 - rx, y0)
        builder.curve_to(x1 - rx + rx * KAPPA, y0, x1, y0 + ry - ry * KAPPA, x1, y0 + ry)
        builder.line_to(x1, y1 - ry)
        builder.curve_to(x1, y1 - ry + ry * KAPPA, x1 - rx + rx * KAPPA, y1, x1 - rx, y1)
        builder.line_to(x0 + rx, y1)
        builder.curve_to(x0 + rx - rx * KAPPA, y1, x0, y1 - ry + ry * KAPPA, x0, y1 - ry)
        builder.line_to(x0, y0 + ry)
        builder.curve_to(x0, y0 + ry - ry * KAPPA, x0 + rx - rx * KAPPA, y0, x0 + rx, y0)
        builder.close()
        return builder.build()

    def transformed(self, transform: AffineTransform) -> Shape:
        if transform.is_axis_aligned():
            r = self.frame.transformed(transform)
            return RoundRect(
                r.x,
                r.y,
                r.width,
                r.height,
                abs(self.arc_width * transform.m00),
                abs(self.arc_height * transform.m11),
            )
        return self.to_path().transformed(transform)


@dataclass(frozen=True)
class Arc(Shape):
    """Elliptical arc of the ellipse inscribed in a frame rectangle."""
    x: float
    y: float
    width: float
    height: float
    start: float
    extent: float
    arc_type: ArcType = ArcType.OPEN

    @property
    def frame(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)

    def is_full(self) -> bool:
        return abs(self.extent) >= 360.0

    def bounds(self) -> Rect:
        return self.to_path().bounds()

    def to_path(self) -> "Path":
        cx, cy = self.frame.center
        rx, ry = self.width / 2, self.height / 2
        extent = max(-360.0, min(360.0, self.extent))
        builder = PathBuilder()
        if self.arc_type is ArcType.PIE:
            builder.move_to(cx, cy)
            _ellipse_segments(builder, cx, cy, rx, ry, self.start, extent, False)
        else:
            _ellipse_segments(builder, cx, cy, rx, ry, self.start, extent, True)
        if self.arc_type is not ArcType.OPEN:
            builder.close()
        return builder.build()

    def transformed(self, transform: AffineTransform) -> Shape:
        if transform.is_axis_aligned():
            r = self.frame.transformed(transform)
            start, extent = _flip_arc_angles(self.start, self.extent, transform.m00, transform.m11)
            return Arc(r.x, r.y, r.width, r.height, start, extent, self.arc_type)
        return self.to_path().transformed(transform)


# =============================================================================
# GENERAL PATH
# =============================================================================

@dataclass(frozen=True)
class Segment:
    """One path operator with its control and end points."""
    type: SegmentType
    points: Tuple[Point, ...] = ()

    @property
    def end(self) -> Optional[Point]:
        return self.points[-1] if self.points else None


def _flatten_bezier(control: np.ndarray) -> np.ndarray:
    """Sample a quadratic or cubic Bezier, excluding its first point."""
    length = float(np.sum(np.hypot(*np.diff(control, axis=0).T)))
    steps = int(min(MAX_CURVE_STEPS, max(MIN_CURVE_STEPS, math.ceil(length / FLATTEN_STEP))))
    t = np.linspace(0.0, 1.0, steps + 1)[1:, None]
    if len(control) == 3:
        p0, p1, p2 = control
        return (1 - t) ** 2 * p0 + 2 * (1 - t) * t * p1 + t ** 2 * p2
    p0, p1, p2, p3 = control
    return (
        (1 - t) ** 3 * p0
        + 3 * (1 - t) ** 2 * t * p1
        + 3 * (1 - t) * t ** 2 * p2
        + t ** 3 * p3
    )


@dataclass(frozen=True)
class Path(Shape):
    """Sequence of subpaths made of line, quadratic and cubic segments."""
    segments: Tuple[Segment, ...] = ()
    winding: WindingRule = WindingRule.NON_ZERO

    @classmethod
    def from_points(
        cls,
        points: Iterable[Sequence[float]],
        closed: bool = True,
        winding: WindingRule = WindingRule.EVEN_ODD,
    ) -> "Path":
        builder = PathBuilder(winding)
        for i, (x, y) in enumerate(points):
            if i == 0:
                builder.move_to(x, y)
            else:
                builder.line_to(x, y)
        if closed:
            builder.close()
        return builder.build()

    def is_empty(self) -> bool:
        return not any(seg.type is not SegmentType.CLOSE for seg in self.segments)

    def is_polyline(self) -> bool:
        """True when the path holds no curve segments."""
        return all(
            seg.type in (SegmentType.MOVE_TO, SegmentType.LINE_TO, SegmentType.CLOSE)
            for seg in self.segments
        )

    def subpaths(self) -> List[Tuple[np.ndarray, bool]]:
        """Flatten into ``(points, closed)`` polylines, curves sampled."""
        result: List[Tuple[np.ndarray, bool]] = []
        current: List[np.ndarray] = []
        start: Optional[np.ndarray] = None

        def flush(closed: bool) -> None:
            if current:
                result.append((np.vstack(current), closed))

        for seg in self.segments:
            if seg.type is SegmentType.MOVE_TO:
                flush(False)
                start = np.asarray(seg.points[0], dtype=float)
                current = [start.reshape(1, 2)]
            elif seg.type is SegmentType.CLOSE:
                flush(True)
                # The pen returns to the subpath start
                current = []
            else:
                if not current:
                    origin = start if start is not None else np.zeros(2)
                    current = [origin.reshape(1, 2)]
                last = current[-1][-1]
                if seg.type is SegmentType.LINE_TO:
                    current.append(np.asarray(seg.points, dtype=float).reshape(1, 2))
                else:
                    control = np.vstack([last, np.asarray(seg.points, dtype=float)])
                    current.append(_flatten_bezier(control))
        flush(False)
        return result

    def bounds(self) -> Rect:
        pts = [pts for pts, _ in self.subpaths()]
        if not pts:
            return Rect(0.0, 0.0, 0.0, 0.0)
        return Rect.from_points(np.vstack(pts))

    def to_path(self) -> "Path":
        return self

    def transformed(self, transform: AffineTransform) -> "Path":
        segments = tuple(
            Segment(seg.type, tuple(transform.transform_points(seg.points)))
            for seg in self.segments
        )
        return Path(segments, self.winding)

    def translated(self, dx: float, dy: float) -> "Path":
        return self.transformed(AffineTransform.translation(dx, dy))


@dataclass
class PathBuilder:
    """Incremental Path construction, mirroring the path operators."""
    winding: WindingRule = WindingRule.NON_ZERO
    _segments: List[Segment] = field(default_factory=list)

    def move_to(self, x: float, y: float) -> "PathBuilder":
        self._segments.append(Segment(SegmentType.MOVE_TO, ((x, y),)))
        return self

    def line_to(self, x: float, y: float) -> "PathBuilder":
        self._segments.append(Segment(SegmentType.LINE_TO, ((x, y),)))
        return self

    def quad_to(self, x1: float, y1: float, x2: float, y2: float) -> "PathBuilder":
        self._segments.append(Segment(SegmentType.QUAD_TO, ((x1, y1), (x2, y2))))
        return self

    def curve_to(
        self, x1: float, y1: float, x2: float, y2: float, x3: float, y3: float
    ) -> "PathBuilder":
        self._segments.append(Segment(SegmentType.CURVE_TO, ((x1, y1), (x2, y2), (x3, y3))))
        return self

    def close(self) -> "PathBuilder":
        self._segments.append(Segment(SegmentType.CLOSE))
        return self

    def build(self) -> Path:
        return Path(tuple(self._segments), self.winding)


def transform_shape(shape: Shape, transform: AffineTransform) -> Shape:
    """Map a shape into another space, skipping the work for identity."""
    if transform.is_identity():
        return shape
    return shape.transformed(transform)
