"""Tests for the destination document model."""

import io

import pytest
from PIL import Image
from pptx import Presentation

from slidegraphics.document import (
    BODY_FONT_INDEX,
    HEADING_FONT_INDEX,
    THEME_MAJOR_FONT,
    THEME_MINOR_FONT,
    FontTable,
    ShapeKind,
    SlideDocument,
)
from slidegraphics.geometry import Rect

from .conftest import PAGE_HEIGHT, PAGE_WIDTH


def _png(color=(255, 0, 0, 255), size=(4, 3)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class TestFontTable:
    """Tests for FontTable."""

    def test_theme_entries(self):
        """Test the first two entries reference the theme fonts."""
        table = FontTable("Body Face", "Heading Face")
        assert table.typeface(BODY_FONT_INDEX) == THEME_MINOR_FONT
        assert table.typeface(HEADING_FONT_INDEX) == THEME_MAJOR_FONT
        assert table.family(HEADING_FONT_INDEX) == "Heading Face"
        assert len(table) == 2

    def test_lookup_case_insensitive(self):
        """Test families are matched regardless of case."""
        table = FontTable("Body Face", "Heading Face")
        assert table.lookup("body face") == 0
        assert table.lookup("Missing") is None

    def test_register(self):
        """Test registered families resolve to their own name."""
        table = FontTable("Body Face", "Heading Face")
        index = table.register("Fancy Sans")
        assert index == 2
        assert table.register("FANCY SANS") == 2
        assert table.typeface(index) == "Fancy Sans"

    def test_from_presentation(self):
        """Test theme fonts are read from the default template."""
        table = FontTable.from_presentation(Presentation())
        assert table.family(BODY_FONT_INDEX)
        assert table.family(HEADING_FONT_INDEX)


class TestSlideDocument:
    """Tests for SlideDocument and Page."""

    def test_first_slide_sets_size(self, document, page):
        """Test the first slide defines the presentation size."""
        prs = document.presentation
        assert prs.slide_width == int(PAGE_WIDTH * 12700)
        assert prs.slide_height == int(PAGE_HEIGHT * 12700)
        assert (page.width, page.height) == (PAGE_WIDTH, PAGE_HEIGHT)

    def test_later_slides_keep_size(self, document, page):
        """Test further slides do not change the size."""
        document.create_slide(100, 100)
        assert document.presentation.slide_width == int(PAGE_WIDTH * 12700)
        assert len(document.pages) == 2

    def test_picture_dedupe(self, document):
        """Test identical images share one handle."""
        first = document.add_picture(_png())
        second = document.add_picture(_png())
        other = document.add_picture(_png(color=(0, 0, 255, 255)))
        assert first is second
        assert other.index == 1
        assert len(document.pictures) == 2
        assert (first.width_px, first.height_px) == (4, 3)
        assert first.content_type == "image/png"

    def test_picture_rejects_garbage(self, document):
        """Test unreadable bytes raise OSError."""
        with pytest.raises(OSError):
            document.add_picture(b"not an image")

    def test_save_bytes(self, document, page):
        """Test saving to bytes produces a readable presentation."""
        data = document.save()
        assert isinstance(data, bytes)
        assert len(Presentation(io.BytesIO(data)).slides) == 1

    def test_save_path(self, document, page, tmp_path):
        """Test saving to a path."""
        output = tmp_path / "out.pptx"
        assert document.save(output) is None
        assert output.exists()


class TestPageArena:
    """Tests for the page shape arena."""

    def test_add_shape_records_parent(self, page):
        """Test shapes are nested under the open group."""
        group_element = page.slide.shapes.add_group_shape()
        group = page.add_shape(ShapeKind.GROUP, group_element, Rect(0, 0, 10, 10), name="g")
        page.push_group(group)
        assert page.container() is not page.slide.shapes

        child = page.add_shape(ShapeKind.RECT, None, Rect(1, 1, 2, 2))
        assert child.parent == group.index
        assert page.children_of(group.index) == [child]
        assert page.group_depth == 1

        assert page.pop_group() is group
        assert page.pop_group() is None
        assert page.roots() == [group]
        assert page.of_kind(ShapeKind.RECT) == [child]
