"""
classify.py — Reduce general paths to the simplest native primitive.

Clipping and non-axis-aligned transforms turn every primitive into a Path.
Before emission the path is inspected again so the slide keeps native
objects where possible:

- a single two-point polyline becomes a Line
- a single closed axis-aligned quadrilateral becomes a Rect
- anything else stays a Path and is emitted as a freeform
"""

from typing import List, Tuple

import numpy as np

from slidegraphics.geometry.shapes import Line, Path, Rect, Shape
from slidegraphics.units import ASSUME_ZERO


def _distinct_points(points: np.ndarray, closed: bool) -> List[Tuple[float, float]]:
    """Drop consecutive duplicates and a closing point equal to the start."""
    result: List[Tuple[float, float]] = []
    for x, y in points:
        if result and abs(result[-1][0] - x) <= ASSUME_ZERO and abs(result[-1][1] - y) <= ASSUME_ZERO:
            continue
        result.append((float(x), float(y)))
    if closed and len(result) > 1:
        first, last = result[0], result[-1]
        if abs(first[0] - last[0]) <= ASSUME_ZERO and abs(first[1] - last[1]) <= ASSUME_ZERO:
            result.pop()
    return result


def _axis_aligned_rect(points: List[Tuple[float, float]]) -> Rect | None:
    """The rectangle the four points trace, or None when they are not one."""
    if len(points) != 4:
        return None
    rect = Rect.from_points(points)
    if rect.is_empty():
        return None
    xs = {rect.min_x, rect.max_x}
    ys = {rect.min_y, rect.max_y}

    def snap(value: float, options: set) -> float | None:
        for option in options:
            if abs(value - option) <= ASSUME_ZERO:
                return option
        return None

    corners = set()
    for i, (x, y) in enumerate(points):
        sx, sy = snap(x, xs), snap(y, ys)
        if sx is None or sy is None:
            return None
        # Consecutive corners must share exactly one coordinate
        nx, ny = points[(i + 1) % 4]
        if (abs(nx - x) <= ASSUME_ZERO) == (abs(ny - y) <= ASSUME_ZERO):
            return None
        corners.add((sx, sy))
    return rect if len(corners) == 4 else None


def decompose(shape: Shape) -> Shape:
    """Return the simplest shape equivalent to ``shape``."""
    if not isinstance(shape, Path) or not shape.is_polyline():
        return shape

    subpaths = shape.subpaths()
    if len(subpaths) != 1:
        return shape

    raw, closed = subpaths[0]
    points = _distinct_points(raw, closed)

    if len(points) == 2:
        (x1, y1), (x2, y2) = points
        return Line(x1, y1, x2, y2)

    if closed:
        rect = _axis_aligned_rect(points)
        if rect is not None:
            return rect

    return shape
