"""Tests for font models and metrics providers."""

import pytest
from PIL import ImageFont

from slidegraphics.geometry import Rect
from slidegraphics.text_measure import (
    ApproximateTextMetrics,
    Font,
    PillowTextMetrics,
    clear_font_cache,
    create_text_metrics,
    font_file,
    get_font,
)


class TestFont:
    """Tests for the Font model."""

    def test_defaults(self):
        """Test default family and size."""
        font = Font()
        assert font.family == "Calibri"
        assert font.size == 12.0
        assert not font.bold

    def test_derive(self):
        """Test deriving a font with changes."""
        font = Font(size=10).derive(bold=True, size=14)
        assert font.bold
        assert font.size == 14

    def test_size_must_be_positive(self):
        """Test zero-size fonts are rejected."""
        with pytest.raises(ValueError):
            Font(size=0)


class TestApproximateTextMetrics:
    """Tests for ApproximateTextMetrics."""

    @pytest.fixture
    def metrics(self) -> ApproximateTextMetrics:
        return ApproximateTextMetrics()

    def test_line_metrics(self, metrics):
        """Test vertical metrics are em fractions."""
        line = metrics.line_metrics(Font(size=20))
        assert (line.ascent, line.descent, line.leading) == (15.0, 5.0, 0.0)
        assert line.height == 20.0

    def test_advance(self, metrics):
        """Test advance grows with character count."""
        assert metrics.advance("abcd", Font(size=20)) == 40.0
        assert metrics.char_width("X", Font(size=20)) == 10.0

    def test_visual_bounds(self, metrics):
        """Test ink bounds sit above the baseline."""
        assert metrics.visual_bounds("ab", Font(size=10)) == Rect(0.0, -7.0, 10.0, 7.0)


class TestPillowTextMetrics:
    """Tests for PillowTextMetrics."""

    @pytest.fixture
    def metrics(self) -> PillowTextMetrics:
        clear_font_cache()
        return PillowTextMetrics()

    def test_line_metrics_positive(self, metrics):
        """Test real fonts report an ascent and a line height."""
        line = metrics.line_metrics(Font(size=24))
        assert line.ascent > 0
        assert line.height >= line.ascent

    def test_advance_monotonic(self, metrics):
        """Test longer strings advance further."""
        font = Font(size=24)
        assert metrics.advance("Hello", font) > metrics.advance("Hi", font) > 0
        assert metrics.advance("", font) == 0.0

    def test_visual_bounds_above_baseline(self, metrics):
        """Test capitals rise above the baseline."""
        bounds = metrics.visual_bounds("H", Font(size=24))
        assert bounds.y < 0
        assert bounds.width > 0

    def test_font_cache(self):
        """Test loaded fonts are reused."""
        clear_font_cache()
        first = get_font("Calibri", 16)
        assert get_font("Calibri", 16) is first
        assert isinstance(first, ImageFont.ImageFont | ImageFont.FreeTypeFont)


def test_create_text_metrics():
    """Test providers are selected by name."""
    assert isinstance(create_text_metrics("approximate"), ApproximateTextMetrics)
    assert isinstance(create_text_metrics("pillow"), PillowTextMetrics)


class TestFontFile:
    """Tests for font file lookup."""

    def test_bold_italic(self):
        """Test bold italic keeps both styles."""
        assert font_file("Arial", bold=True, italic=True) == "arialbi.ttf"
        assert font_file("DejaVu Sans", bold=True, italic=True) == "DejaVuSans-BoldOblique.ttf"

    def test_single_styles(self):
        """Test bold and italic alone."""
        assert font_file("Calibri", bold=True) == "calibrib.ttf"
        assert font_file("Calibri", italic=True) == "calibrii.ttf"
        assert font_file("Calibri") == "calibri.ttf"

    def test_missing_style_falls_back_to_family(self):
        """Test families without styled files use the regular file."""
        assert font_file("Segoe UI", bold=True, italic=True) == "segoeui.ttf"

    def test_unknown_family(self):
        """Test unknown families use the fallback file."""
        assert font_file("Nonexistent Sans", bold=True) == "DejaVuSans.ttf"
