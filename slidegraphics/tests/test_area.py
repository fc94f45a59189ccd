"""Tests for Area booleans used by clipping."""

import math

import pytest

from slidegraphics.geometry import AffineTransform, Area, Ellipse, Line, Path, PathBuilder, Rect
from slidegraphics.geometry.area import shape_to_geometry
from slidegraphics.geometry.classify import decompose
from slidegraphics.geometry.shapes import WindingRule


def _square(x: float, y: float, size: float, reverse: bool = False) -> list:
    corners = [(x, y), (x + size, y), (x + size, y + size), (x, y + size)]
    return corners[::-1] if reverse else corners


def _nested_squares(winding: WindingRule, reverse_inner: bool, reverse_outer: bool = False) -> Path:
    builder = PathBuilder(winding)
    for corners in (_square(0, 0, 10, reverse_outer), _square(2, 2, 6, reverse_inner)):
        builder.move_to(*corners[0])
        for x, y in corners[1:]:
            builder.line_to(x, y)
        builder.close()
    return builder.build()


class TestGeometryConversion:
    """Tests for shape to geometry conversion."""

    def test_rect_area(self):
        """Test rectangles convert to boxes."""
        assert shape_to_geometry(Rect(0, 0, 10, 5)).area == pytest.approx(50.0)

    def test_line_has_no_area(self):
        """Test lines never contribute area."""
        assert shape_to_geometry(Line(0, 0, 10, 10)).is_empty

    def test_ellipse_area(self):
        """Test flattened ellipses approximate the true area."""
        area = shape_to_geometry(Ellipse(0, 0, 10, 10)).area
        assert area == pytest.approx(math.pi * 25, rel=0.01)

    def test_even_odd_cuts_hole(self):
        """Test even-odd nesting leaves a hole regardless of direction."""
        path = _nested_squares(WindingRule.EVEN_ODD, reverse_inner=False)
        assert shape_to_geometry(path).area == pytest.approx(64.0)

    def test_non_zero_same_direction_fills(self):
        """Test non-zero nesting with equal winding fills the hole."""
        path = _nested_squares(WindingRule.NON_ZERO, reverse_inner=False)
        assert shape_to_geometry(path).area == pytest.approx(100.0)

    def test_non_zero_opposite_direction_cuts(self):
        """Test non-zero nesting with opposite winding leaves a hole."""
        path = _nested_squares(WindingRule.NON_ZERO, reverse_inner=True)
        assert shape_to_geometry(path).area == pytest.approx(64.0)

    def test_non_zero_follows_outer_ring_direction(self):
        """Test the largest ring's winding decides which rings add area."""
        same = _nested_squares(WindingRule.NON_ZERO, reverse_inner=True, reverse_outer=True)
        assert shape_to_geometry(same).area == pytest.approx(100.0)
        opposite = _nested_squares(WindingRule.NON_ZERO, reverse_inner=False, reverse_outer=True)
        assert shape_to_geometry(opposite).area == pytest.approx(64.0)


class TestArea:
    """Tests for Area."""

    @pytest.fixture
    def area(self) -> Area:
        return Area.from_shape(Rect(0, 0, 10, 10))

    def test_contains(self, area):
        """Test containment of inner and overlapping rectangles."""
        assert area.contains_rect(Rect(2, 2, 3, 3))
        assert area.contains_rect(Rect(0, 0, 10, 10))
        assert not area.contains_rect(Rect(5, 5, 10, 10))

    def test_intersects(self, area):
        """Test intersection requires shared interior."""
        assert area.intersects_rect(Rect(5, 5, 10, 10))
        assert not area.intersects_rect(Rect(20, 20, 5, 5))
        assert not area.intersects_rect(Rect(10, 0, 5, 5))

    def test_rectangular(self, area):
        """Test rectangular areas report themselves as Rect."""
        assert area.is_rectangular()
        assert area.to_shape() == Rect(0, 0, 10, 10)

    def test_non_rectangular(self):
        """Test non-rectangular areas come back as paths."""
        area = Area.from_shape(Ellipse(0, 0, 10, 10))
        assert not area.is_rectangular()
        assert isinstance(area.to_shape(), Path)

    def test_intersect(self, area):
        """Test intersection of two areas."""
        result = area.intersect(Area.from_shape(Rect(5, 5, 10, 10)))
        assert result.bounds() == Rect(5, 5, 5, 5)

    def test_disjoint_intersection_is_empty(self, area):
        """Test disjoint areas intersect to nothing."""
        result = area.intersect(Area.from_shape(Rect(20, 20, 5, 5)))
        assert result.is_empty()
        assert result.bounds() is None
        assert result.to_shape() is None

    def test_transformed(self, area):
        """Test areas map through transforms."""
        moved = area.transformed(AffineTransform.translation(5, -5).concatenate(AffineTransform.scaling(2, 1)))
        assert moved.bounds() == Rect(5, -5, 20, 10)

    def test_rotated_area_is_not_rectangular(self, area):
        """Test rotated squares are no longer their bounding box."""
        rotated = area.transformed(AffineTransform.rotation(math.pi / 4))
        assert not rotated.is_rectangular()


class TestClipping:
    """Tests for clipping shapes against an area."""

    @pytest.fixture
    def clip(self) -> Area:
        return Area.from_shape(Rect(0, 0, 10, 10))

    def test_clip_area_rect(self, clip):
        """Test filled regions are cut to the clip."""
        result = clip.clip_area(Rect(5, 5, 10, 10))
        assert decompose(result) == Rect(5, 5, 5, 5)

    def test_clip_area_outside(self, clip):
        """Test regions outside the clip vanish."""
        assert clip.clip_area(Rect(20, 20, 5, 5)) is None

    def test_clip_outline_line(self, clip):
        """Test lines are cut where they leave the clip."""
        result = decompose(clip.clip_outline(Line(-5, 5, 15, 5)))
        assert isinstance(result, Line)
        assert sorted([result.x1, result.x2]) == pytest.approx([0.0, 10.0])
        assert (result.y1, result.y2) == pytest.approx((5.0, 5.0))

    def test_clip_outline_stays_open(self, clip):
        """Test clipped outlines are open polylines."""
        result = clip.clip_outline(Rect(5, 5, 10, 10))
        assert result is not None
        assert not any(closed for _, closed in result.subpaths())
        assert result.bounds() == Rect(5, 5, 5, 5)

    def test_clip_outline_outside(self, clip):
        """Test outlines outside the clip vanish."""
        assert clip.clip_outline(Line(20, 20, 30, 30)) is None
