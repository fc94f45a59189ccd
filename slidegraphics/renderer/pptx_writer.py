"""High-level PPTX generation from a painting callback."""

import logging
from pathlib import Path
from typing import BinaryIO, Callable, Optional, Union

from slidegraphics.config import GraphicsSettings, configure_logging, get_settings
from slidegraphics.document import HEADING_FONT_INDEX, Page, PersistedShape, SlideDocument
from slidegraphics.geometry.shapes import Rect
from slidegraphics.paint import BLACK, WHITE, Color
from slidegraphics.renderer.shape_renderer import ShapeRenderer
from slidegraphics.renderer.text_renderer import TextRenderer
from slidegraphics.slide_graphics import SlideGraphics
from slidegraphics.units import TITLE_FONT_SIZE_PT, TITLE_HEIGHT_PT

logger = logging.getLogger(__name__)

Painter = Callable[[SlideGraphics], None]


class PPTXWriter:
    """Generates single-slide PPTX files by running painters on a graphics context."""

    def __init__(self, settings: Optional[GraphicsSettings] = None) -> None:
        """Initialize the PPTX writer."""
        self.settings = settings or get_settings()
        self.text_renderer = TextRenderer()

    def render(
        self,
        painter: Painter,
        width: float,
        height: float,
        title: Optional[str] = None,
        background: Color = WHITE,
        foreground: Color = BLACK,
    ) -> SlideDocument:
        """Paint one slide and return the document.

        Args:
            painter: Callback issuing drawing calls on the slide's context.
            width: Slide width in points.
            height: Slide height in points.
            title: Optional title placed over the top of the slide.
            background: Slide background colour.
            foreground: Initial paint.

        Returns:
            The populated SlideDocument.
        """
        document = SlideDocument()
        page = document.create_slide(width, height)

        graphics = SlideGraphics(
            page,
            background=background,
            foreground=foreground,
            settings=self.settings,
        )
        try:
            painter(graphics)
        finally:
            graphics.dispose()

        if title:
            self._add_title(page, title, foreground)

        logger.debug(f"Rendered slide with {len(page.shapes)} shapes, {len(document.pictures)} pictures")
        return document

    def write(
        self,
        painter: Painter,
        width: float,
        height: float,
        output: Union[str, Path, BinaryIO, None] = None,
        title: Optional[str] = None,
        background: Color = WHITE,
        foreground: Color = BLACK,
    ) -> bytes | None:
        """Paint one slide and write it as a PPTX file.

        Args:
            painter: Callback issuing drawing calls on the slide's context.
            width: Slide width in points.
            height: Slide height in points.
            output: Output path, file object, or None to return bytes.
            title: Optional slide title.
            background: Slide background colour.
            foreground: Initial paint.

        Returns:
            PPTX bytes if output is None, otherwise None.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Slide size must be positive, got {width} x {height}")
        document = self.render(painter, width, height, title, background, foreground)
        return document.save(output)

    def _add_title(self, page: Page, title: str, color: Color) -> PersistedShape:
        """Place a title text box across the top of the slide."""
        anchor = Rect(0.0, 0.0, page.width, min(TITLE_HEIGHT_PT, page.height))
        record = ShapeRenderer(page).render_text_box(anchor)
        font_index = HEADING_FONT_INDEX
        self.text_renderer.render(
            record.element,
            title,
            TITLE_FONT_SIZE_PT,
            page.document.font_table.typeface(font_index),
            color,
        )
        record.text = title
        record.font_index = font_index
        return record


def export_document(
    painter: Painter,
    width: float,
    height: float,
    output: Union[str, Path, BinaryIO, None] = None,
    title: Optional[str] = None,
    background: Color = WHITE,
    foreground: Color = BLACK,
    settings: Optional[GraphicsSettings] = None,
) -> bytes | None:
    """Render a painter into a one-slide presentation.

    Args:
        painter: Callback issuing drawing calls on the slide's context.
        width: Slide width in points.
        height: Slide height in points.
        output: Output path, file object, or None to return bytes.
        title: Optional slide title.
        background: Slide background colour.
        foreground: Initial paint.
        settings: Rendering settings; defaults to ``get_settings()``.

    Returns:
        PPTX bytes if output is None, otherwise None.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    writer = PPTXWriter(settings)
    return writer.write(painter, width, height, output, title, background, foreground)
