"""
area.py — Area booleans over shapes, backed by shapely.

An Area is the filled region of one or more shapes. The graphics context keeps
its clip as an Area in device space and uses it three ways:

- containment / intersection tests against a shape's bounds
- area intersection for fills (result stays closed)
- outline clipping for strokes (result is open polylines)
"""

from typing import List, Optional

from shapely.affinity import affine_transform
from shapely.geometry import (
    GeometryCollection,
    LinearRing,
    LineString,
    MultiLineString,
    MultiPolygon,
    Polygon,
    box,
)
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union
from shapely.validation import make_valid

from slidegraphics.geometry.affine import AffineTransform
from slidegraphics.geometry.shapes import Line, Path, PathBuilder, Rect, Shape, WindingRule
from slidegraphics.units import ASSUME_ZERO


def polygons_of(geometry: BaseGeometry) -> List[Polygon]:
    """Polygonal members of any geometry, collections flattened."""
    if geometry.is_empty:
        return []
    if isinstance(geometry, Polygon):
        return [geometry]
    if isinstance(geometry, (MultiPolygon, GeometryCollection)):
        result: List[Polygon] = []
        for part in geometry.geoms:
            result.extend(polygons_of(part))
        return result
    return []


def lines_of(geometry: BaseGeometry) -> List[LineString]:
    """Linear members of any geometry, collections flattened."""
    if geometry.is_empty:
        return []
    if isinstance(geometry, LineString):
        return [geometry]
    if isinstance(geometry, (MultiLineString, GeometryCollection)):
        result: List[LineString] = []
        for part in geometry.geoms:
            result.extend(lines_of(part))
        return result
    return []


def _polygonal(geometry: BaseGeometry) -> BaseGeometry:
    polygons = polygons_of(geometry)
    if not polygons:
        return Polygon()
    if len(polygons) == 1:
        return polygons[0]
    return unary_union(polygons)


def shape_to_geometry(shape: Shape) -> BaseGeometry:
    """Filled region of a shape as a shapely polygonal geometry."""
    if isinstance(shape, Rect):
        if shape.is_empty():
            return Polygon()
        return box(shape.min_x, shape.min_y, shape.max_x, shape.max_y)
    if isinstance(shape, Line):
        return Polygon()

    path = shape.to_path()
    rings = [pts for pts, _ in path.subpaths() if len(pts) >= 3]
    if not rings:
        return Polygon()

    if path.winding is WindingRule.EVEN_ODD:
        result: BaseGeometry = Polygon()
        for pts in rings:
            result = result.symmetric_difference(_polygonal(make_valid(Polygon(pts))))
        return _polygonal(result)

    # Non-zero: rings wound against the dominant ring cut holes
    oriented = sorted(
        (LinearRing(pts) for pts in rings),
        key=lambda ring: Polygon(ring).area,
        reverse=True,
    )
    dominant = oriented[0].is_ccw
    result = Polygon()
    for ring in oriented:
        region = _polygonal(make_valid(Polygon(ring)))
        if ring.is_ccw == dominant:
            result = result.union(region)
        else:
            result = result.difference(region)
    return _polygonal(result)


def shape_to_outline(shape: Shape) -> BaseGeometry:
    """Stroked outline of a shape as shapely line geometry."""
    if isinstance(shape, Line):
        return LineString([shape.start, shape.end])
    lines = []
    for pts, closed in shape.to_path().subpaths():
        coords = [tuple(p) for p in pts]
        if closed and coords[0] != coords[-1]:
            coords.append(coords[0])
        if len(coords) >= 2:
            lines.append(LineString(coords))
    if not lines:
        return LineString()
    if len(lines) == 1:
        return lines[0]
    return MultiLineString(lines)


def geometry_to_path(geometry: BaseGeometry) -> Optional[Path]:
    """Convert shapely geometry back into a Path, or None when empty."""
    builder = PathBuilder(WindingRule.EVEN_ODD)
    empty = True
    for polygon in polygons_of(geometry):
        for ring in [polygon.exterior, *polygon.interiors]:
            coords = list(ring.coords)[:-1]
            if len(coords) < 3:
                continue
            builder.move_to(*coords[0])
            for x, y in coords[1:]:
                builder.line_to(x, y)
            builder.close()
            empty = False
    for line in lines_of(geometry):
        coords = list(line.coords)
        if len(coords) < 2:
            continue
        closed = isinstance(line, LinearRing) or (len(coords) > 2 and coords[0] == coords[-1])
        if closed:
            coords = coords[:-1]
        builder.move_to(*coords[0])
        for x, y in coords[1:]:
            builder.line_to(x, y)
        if closed:
            builder.close()
        empty = False
    return None if empty else builder.build()


class Area:
    """A polygonal region supporting the boolean operations clipping needs."""

    def __init__(self, geometry: BaseGeometry | None = None):
        self._geometry = _polygonal(geometry) if geometry is not None else Polygon()

    @classmethod
    def from_shape(cls, shape: Shape) -> "Area":
        return cls(shape_to_geometry(shape))

    @property
    def geometry(self) -> BaseGeometry:
        return self._geometry

    def is_empty(self) -> bool:
        return self._geometry.is_empty or self._geometry.area <= 0.0

    def bounds(self) -> Optional[Rect]:
        if self.is_empty():
            return None
        min_x, min_y, max_x, max_y = self._geometry.bounds
        return Rect(min_x, min_y, max_x - min_x, max_y - min_y)

    def is_rectangular(self) -> bool:
        """True when the area is exactly its own bounding box."""
        bounds = self.bounds()
        if bounds is None or not isinstance(self._geometry, Polygon):
            return False
        return abs(self._geometry.area - bounds.width * bounds.height) <= ASSUME_ZERO

    # -------------------------------------------------------------------------
    # Tests
    # -------------------------------------------------------------------------

    def contains_rect(self, rect: Rect) -> bool:
        if self.is_empty():
            return False
        return self._geometry.covers(box(rect.min_x, rect.min_y, rect.max_x, rect.max_y))

    def intersects_rect(self, rect: Rect) -> bool:
        """True when the rectangle and the area share some interior."""
        if self.is_empty():
            return False
        probe = box(rect.min_x, rect.min_y, rect.max_x, rect.max_y)
        return self._geometry.intersection(probe).area > 0.0

    # -------------------------------------------------------------------------
    # Booleans
    # -------------------------------------------------------------------------

    def intersect(self, other: "Area") -> "Area":
        return Area(self._geometry.intersection(other._geometry))

    def transformed(self, transform: AffineTransform) -> "Area":
        t = transform
        return Area(affine_transform(self._geometry, [t.m00, t.m01, t.m10, t.m11, t.m02, t.m12]))

    def clip_area(self, shape: Shape) -> Optional[Path]:
        """Filled region of ``shape`` inside this area."""
        clipped = self._geometry.intersection(shape_to_geometry(shape))
        polygons = [p for p in polygons_of(clipped) if p.area > 0.0]
        if not polygons:
            return None
        return geometry_to_path(MultiPolygon(polygons) if len(polygons) > 1 else polygons[0])

    def clip_outline(self, shape: Shape) -> Optional[Path]:
        """Outline of ``shape`` inside this area, as open polylines."""
        clipped = self._geometry.intersection(shape_to_outline(shape))
        lines = [line for line in lines_of(clipped) if line.length > 0.0]
        if not lines:
            return None
        return geometry_to_path(MultiLineString(lines) if len(lines) > 1 else lines[0])

    def to_shape(self) -> Optional[Shape]:
        """The area as a Rect when rectangular, otherwise as a Path."""
        if self.is_empty():
            return None
        if self.is_rectangular():
            return self.bounds()
        return geometry_to_path(self._geometry)

    def __repr__(self) -> str:
        return f"Area({self._geometry.wkt})"
