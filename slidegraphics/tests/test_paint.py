"""Tests for colours, gradients, strokes and dash quantization."""

import numpy as np
import pytest
from pptx.dml.color import RGBColor
from pptx.enum.dml import MSO_LINE_DASH_STYLE
from pydantic import ValidationError

from slidegraphics.paint import (
    BLACK,
    DASH_STYLE_MAP,
    WHITE,
    Color,
    CycleMethod,
    DashBucket,
    GradientStop,
    LinearGradient,
    RadialGradient,
    Stroke,
    _Gradient,
    quantize_dash,
    solid_color,
)

DOCUMENT_WIDTH = 348.0


class TestColor:
    """Tests for Color."""

    def test_from_hex(self):
        """Test hex parsing with and without a leading hash."""
        color = Color.from_hex("#FF8000")
        assert (color.r, color.g, color.b, color.a) == (255, 128, 0, 255)
        assert Color.from_hex("ff8000") == color
        assert color.hex == "FF8000"

    def test_rgb(self):
        """Test conversion to python-pptx colours."""
        assert Color(r=1, g=2, b=3).rgb == RGBColor(1, 2, 3)

    def test_channel_range(self):
        """Test channels outside 0..255 are rejected."""
        with pytest.raises(ValidationError):
            Color(r=300, g=0, b=0)

    def test_alpha(self):
        """Test opacity helpers."""
        half = BLACK.with_alpha(128)
        assert not half.is_opaque()
        assert half.opacity == pytest.approx(128 / 255)
        assert BLACK.is_opaque()

    def test_frozen(self):
        """Test colours are immutable."""
        with pytest.raises(ValidationError):
            BLACK.r = 10


class TestGradients:
    """Tests for gradient paints."""

    @pytest.fixture
    def gradient(self) -> LinearGradient:
        return LinearGradient.two_color(0, 0, BLACK, 10, 0, WHITE)

    def test_parameter_along_axis(self, gradient):
        """Test the parameter is the projection onto the gradient line."""
        xs = np.array([0.0, 5.0, 10.0])
        ys = np.array([3.0, -2.0, 7.0])
        assert gradient.parameter(xs, ys).tolist() == pytest.approx([0.0, 0.5, 1.0])

    def test_base_needs_parameter(self):
        """Test only concrete gradients can be built."""
        stops = (GradientStop(position=0.0, color=BLACK), GradientStop(position=1.0, color=WHITE))
        with pytest.raises(TypeError):
            _Gradient(stops=stops)

    def test_sample_midpoint(self, gradient):
        """Test the midpoint samples to mid grey."""
        rgba = gradient.sample(np.array([5.0]), np.array([0.0]))
        assert rgba.shape == (1, 4)
        assert rgba[0].tolist() == [128, 128, 128, 255]

    def test_no_cycle_clamps(self, gradient):
        """Test samples beyond the end keep the end colour."""
        rgba = gradient.sample(np.array([-5.0, 20.0]), np.array([0.0, 0.0]))
        assert rgba[:, 0].tolist() == [0, 255]

    def test_cyclic_reflects(self):
        """Test cyclic gradients mirror past the end point."""
        gradient = LinearGradient.two_color(0, 0, BLACK, 10, 0, WHITE, cyclic=True)
        assert gradient.cycle is CycleMethod.REFLECT
        rgba = gradient.sample(np.array([15.0]), np.array([0.0]))
        assert rgba[0, 0] == 128

    def test_repeat(self):
        """Test repeating gradients restart past the end point."""
        gradient = LinearGradient(
            start=(0, 0),
            end=(10, 0),
            stops=(GradientStop(position=0.0, color=BLACK), GradientStop(position=1.0, color=WHITE)),
            cycle=CycleMethod.REPEAT,
        )
        rgba = gradient.sample(np.array([12.5]), np.array([0.0]))
        assert rgba[0, 0] == 64

    def test_stops_sorted(self):
        """Test stops are ordered by position."""
        red = Color(r=255, g=0, b=0)
        gradient = RadialGradient(
            center=(0, 0),
            radius=10,
            stops=(GradientStop(position=1.0, color=red), GradientStop(position=0.0, color=BLACK)),
        )
        assert [s.position for s in gradient.stops] == [0.0, 1.0]

    def test_radial_parameter(self):
        """Test the radial parameter is the distance over the radius."""
        gradient = RadialGradient(
            center=(0, 0),
            radius=10,
            stops=(GradientStop(position=0.0, color=BLACK), GradientStop(position=1.0, color=WHITE)),
        )
        assert gradient.parameter(np.array([3.0]), np.array([4.0])).tolist() == pytest.approx([0.5])

    def test_single_stop_rejected(self):
        """Test a gradient needs at least two stops."""
        with pytest.raises(ValidationError):
            RadialGradient(center=(0, 0), radius=1, stops=(GradientStop(position=0.0, color=BLACK),))

    def test_brighter_color(self, gradient):
        """Test gradients stroke with their brighter end colour."""
        assert solid_color(gradient) == WHITE
        assert solid_color(BLACK) == BLACK


class TestDashQuantization:
    """Tests for quantize_dash."""

    @pytest.mark.parametrize("dash", [None, (), (5.0,)])
    def test_solid(self, dash):
        """Test missing or single-element arrays are solid."""
        assert quantize_dash(dash, DOCUMENT_WIDTH) is DashBucket.SOLID

    def test_two_element_by_ratio(self):
        """Test two-element arrays are bucketed by relative dash length."""
        assert quantize_dash((0.4, 1.0), DOCUMENT_WIDTH) is DashBucket.ROUND_DOT
        assert quantize_dash((2.0, 1.0), DOCUMENT_WIDTH) is DashBucket.SQUARE_DOT
        assert quantize_dash((10.0, 5.0), DOCUMENT_WIDTH) is DashBucket.DASH

    def test_by_length(self):
        """Test longer arrays are bucketed by element count."""
        assert quantize_dash((4, 2, 1), DOCUMENT_WIDTH) is DashBucket.DASH_DOT
        assert quantize_dash((8, 2, 1, 2), DOCUMENT_WIDTH) is DashBucket.LONG_DASH_DOT
        assert quantize_dash((8, 2, 1, 2, 1, 2), DOCUMENT_WIDTH) is DashBucket.LONG_DASH_DOT_DOT

    def test_zero_width_document(self):
        """Test a degenerate document width falls back to plain dashes."""
        assert quantize_dash((0.1, 1.0), 0) is DashBucket.DASH

    def test_every_bucket_has_a_style(self):
        """Test each bucket maps to a preset dash style."""
        assert set(DASH_STYLE_MAP) == set(DashBucket)
        assert DASH_STYLE_MAP[DashBucket.LONG_DASH_DOT_DOT] is MSO_LINE_DASH_STYLE.DASH_DOT_DOT


class TestStroke:
    """Tests for Stroke."""

    def test_defaults(self):
        """Test the default pen."""
        stroke = Stroke()
        assert stroke.width == 1.0
        assert stroke.dash is None

    def test_with_width(self):
        """Test copying with a new width."""
        stroke = Stroke(width=3, dash=(1.0, 2.0))
        wider = stroke.with_width(5)
        assert wider.width == 5
        assert wider.dash == (1.0, 2.0)
        assert stroke.width == 3

    def test_negative_width_rejected(self):
        """Test widths must be non-negative."""
        with pytest.raises(ValidationError):
            Stroke(width=-1)
