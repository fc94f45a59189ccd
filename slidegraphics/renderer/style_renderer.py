"""Apply visual styles to PowerPoint shapes."""

import logging
from typing import Any

from lxml import etree
from pptx.oxml.ns import qn
from pptx.slide import Slide

from slidegraphics.effects import ShadowSpec
from slidegraphics.paint import DASH_STYLE_MAP, Color, DashBucket, LineCap, LineJoin
from slidegraphics.units import DML_PERCENT, pt_to_emu

logger = logging.getLogger(__name__)

# Children of a:ln that must precede the join element
_LN_JOIN_TAGS = (qn("a:round"), qn("a:bevel"), qn("a:miter"))


class StyleRenderer:
    """Applies line, fill and effect styles to PowerPoint shapes."""

    def apply_stroke(
        self,
        pptx_shape: Any,
        color: Color,
        width: float,
        dash: DashBucket = DashBucket.SOLID,
        cap: LineCap = LineCap.ROUND,
        join: LineJoin = LineJoin.ROUND,
    ) -> None:
        """Apply a solid line to a shape.

        Args:
            pptx_shape: The python-pptx shape object.
            color: Line colour (alpha is honoured).
            width: Line width in device units.
            dash: Quantized dash style.
            cap: End cap style.
            join: Corner join style.
        """
        line = pptx_shape.line
        line.color.rgb = color.rgb
        line.width = pt_to_emu(width)
        line.dash_style = DASH_STYLE_MAP.get(dash, DASH_STYLE_MAP[DashBucket.SOLID])

        ln = pptx_shape._element.spPr.find(qn("a:ln"))
        if ln is None:
            return
        ln.set("cap", cap.value)

        # Replace any existing join
        for tag in _LN_JOIN_TAGS:
            for existing in ln.findall(tag):
                ln.remove(existing)
        join_elem = etree.SubElement(ln, qn(f"a:{join.value}"))
        if join is LineJoin.MITER:
            join_elem.set("lim", "800000")

        if not color.is_opaque():
            self._set_color_alpha(ln.find(qn("a:solidFill")), color.opacity)

    def apply_fill(self, pptx_shape: Any, color: Color) -> None:
        """Apply a solid fill to a shape.

        Args:
            pptx_shape: The python-pptx shape object.
            color: Fill colour (alpha is honoured).
        """
        pptx_shape.fill.solid()
        pptx_shape.fill.fore_color.rgb = color.rgb

        # Apply transparency if not fully opaque
        if not color.is_opaque():
            spPr = pptx_shape._element.spPr
            self._set_color_alpha(spPr.find(qn("a:solidFill")), color.opacity)

    def clear_fill(self, pptx_shape: Any) -> None:
        pptx_shape.fill.background()

    def clear_line(self, pptx_shape: Any) -> None:
        pptx_shape.line.fill.background()

    def apply_shadow(self, pptx_shape: Any, spec: ShadowSpec) -> None:
        """Apply an outer or inner shadow to a shape.

        Args:
            pptx_shape: The python-pptx shape object.
            spec: The shadow parameters.
        """
        spPr = pptx_shape._element.spPr

        # Create effectLst if it doesn't exist
        effectLst = spPr.find(qn("a:effectLst"))
        if effectLst is None:
            effectLst = etree.SubElement(spPr, qn("a:effectLst"))

        # Remove existing shadows
        for tag in ("a:outerShdw", "a:innerShdw"):
            for existing in effectLst.findall(qn(tag)):
                effectLst.remove(existing)

        shadow = etree.SubElement(effectLst, qn(spec.tag))
        shadow.set("blurRad", str(spec.blur_rad))
        shadow.set("dist", str(spec.dist))
        shadow.set("dir", str(spec.dir))
        if spec.tag == "a:outerShdw":
            shadow.set("sx", str(spec.scale))
            shadow.set("sy", str(spec.scale))
            shadow.set("algn", "ctr")
            shadow.set("rotWithShape", "0")

        # Set shadow color with alpha
        srgbClr = etree.SubElement(shadow, qn("a:srgbClr"))
        srgbClr.set("val", spec.color_hex)
        alpha = etree.SubElement(srgbClr, qn("a:alpha"))
        alpha.set("val", str(spec.alpha))

    def apply_background(self, slide: Slide, color: Color) -> None:
        """Apply a solid background fill to a slide.

        Args:
            slide: The PowerPoint slide.
            color: The background colour.
        """
        background = slide.background
        background.fill.solid()
        background.fill.fore_color.rgb = color.rgb

    def _set_color_alpha(self, fill_elem: Any, opacity: float) -> None:
        """Set colour transparency on a solidFill element via XML.

        Args:
            fill_elem: The <a:solidFill> element, or None.
            opacity: Opacity value (0-1).
        """
        if fill_elem is None:
            return

        srgbClr = fill_elem.find(qn("a:srgbClr"))
        if srgbClr is None:
            return

        # Remove existing alpha
        for existing in srgbClr.findall(qn("a:alpha")):
            srgbClr.remove(existing)

        # Add new alpha
        alpha_elem = etree.SubElement(srgbClr, qn("a:alpha"))
        alpha_elem.set("val", str(int(round(opacity * DML_PERCENT))))
