"""Tests for PPTXWriter and export_document."""

import io

import pytest
from pptx import Presentation

from slidegraphics import PPTXWriter, export_document
from slidegraphics.document import HEADING_FONT_INDEX, ShapeKind
from slidegraphics.paint import Color

from .conftest import make_settings

RED = Color(r=255, g=0, b=0)


def paint_scene(g):
    g.set_color(RED)
    g.fill_rect(10, 60, 100, 50)
    g.draw_line(0, 0, 100, 100)
    g.draw_string("Caption", 10, 150)


class TestPPTXWriter:
    """Tests for PPTXWriter."""

    @pytest.fixture
    def writer(self) -> PPTXWriter:
        return PPTXWriter(make_settings())

    def test_render(self, writer):
        """Test rendering records every painted shape."""
        document = writer.render(paint_scene, 400, 300)
        page = document.pages[0]
        assert [s.kind for s in page.shapes] == [ShapeKind.RECT, ShapeKind.LINE, ShapeKind.TEXT_BOX]

    def test_title(self, writer):
        """Test titles are placed last in the heading font."""
        document = writer.render(paint_scene, 400, 300, title="Overview")
        title = document.pages[0].shapes[-1]
        assert title.text == "Overview"
        assert title.font_index == HEADING_FONT_INDEX
        run = title.element.text_frame.paragraphs[0].runs[0]
        assert run.font.name == "+mj-lt"

    def test_write_bytes(self, writer):
        """Test writing returns a readable presentation."""
        data = writer.write(paint_scene, 400, 300)
        prs = Presentation(io.BytesIO(data))
        assert prs.slide_width == 400 * 12700
        assert prs.slide_height == 300 * 12700
        assert len(prs.slides[0].shapes) == 3

    @pytest.mark.parametrize("size", [(0, 100), (100, -1)])
    def test_invalid_size(self, writer, size):
        """Test non-positive slide sizes are rejected."""
        with pytest.raises(ValueError):
            writer.write(paint_scene, *size)

    def test_painter_errors_propagate(self, writer):
        """Test painter failures reach the caller."""

        def broken(g):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            writer.render(broken, 100, 100)


class TestExportDocument:
    """Tests for export_document."""

    def test_to_file(self, tmp_path):
        """Test exporting to a path."""
        output = tmp_path / "scene.pptx"
        result = export_document(paint_scene, 400, 300, output, title="Scene", settings=make_settings())
        assert result is None
        prs = Presentation(str(output))
        assert len(prs.slides[0].shapes) == 4

    def test_to_bytes(self):
        """Test exporting to bytes."""
        data = export_document(paint_scene, 200, 200, settings=make_settings())
        assert data[:2] == b"PK"
