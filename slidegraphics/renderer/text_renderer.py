"""Render text content into PowerPoint text boxes."""

from typing import Any

from pptx.enum.text import MSO_ANCHOR, MSO_AUTO_SIZE, PP_ALIGN
from pptx.util import Pt

from slidegraphics.paint import Color
from slidegraphics.units import clamp

# Range DrawingML accepts for a:rPr/@sz
MIN_FONT_SIZE_PT = 1.0
MAX_FONT_SIZE_PT = 4000.0


class TextRenderer:
    """Formats a single-run text frame the way the graphics context lays it out.

    Layout is computed by the caller, so the frame must not add anything of
    its own: no insets, no wrapping, no auto-fit, top anchored, left aligned.
    """

    def render(
        self,
        text_box: Any,
        text: str,
        size: float,
        typeface: str,
        color: Color,
        bold: bool = False,
        italic: bool = False,
    ) -> None:
        """Render text into a text box.

        Args:
            text_box: The python-pptx text box shape.
            text: Text to show.
            size: Font size in points.
            typeface: Family name or theme font reference.
            color: Text colour.
            bold: Bold run.
            italic: Italic run.
        """
        text_frame = text_box.text_frame
        text_frame.margin_left = 0
        text_frame.margin_right = 0
        text_frame.margin_top = 0
        text_frame.margin_bottom = 0
        text_frame.word_wrap = False
        text_frame.auto_size = MSO_AUTO_SIZE.NONE
        text_frame.vertical_anchor = MSO_ANCHOR.TOP

        paragraph = text_frame.paragraphs[0]
        paragraph.alignment = PP_ALIGN.LEFT

        run = paragraph.add_run()
        run.text = text

        font = run.font
        font.size = Pt(clamp(size, MIN_FONT_SIZE_PT, MAX_FONT_SIZE_PT))
        font.name = typeface
        font.bold = bold
        font.italic = italic
        font.color.rgb = color.rgb
