"""Emit device-space geometry as native PowerPoint shapes.

Each emitted shape is created in the page's current container (the open
group, or the slide) and recorded in the page arena. Styling is left to the
caller; this module only decides which DrawingML object represents the
geometry and where it sits.
"""

import math
from io import BytesIO
from typing import Any

from lxml import etree
from pptx.enum.shapes import MSO_CONNECTOR, MSO_SHAPE
from pptx.oxml.ns import qn

from slidegraphics.document import Page, PersistedShape, PictureHandle, ShapeKind
from slidegraphics.geometry.classify import decompose
from slidegraphics.geometry.shapes import Arc, ArcType, Ellipse, Line, Path, Rect, RoundRect, Shape
from slidegraphics.renderer.path_renderer import PathRenderer
from slidegraphics.units import ASSUME_ZERO, PPTX_ADJUSTMENT_SCALE, DML_ANGLE, clamp, pt_to_emu


# Map primitive kinds to MSO_SHAPE presets
AUTO_SHAPE_MAP: dict[ShapeKind, MSO_SHAPE] = {
    ShapeKind.RECT: MSO_SHAPE.RECTANGLE,
    ShapeKind.ROUND_RECT: MSO_SHAPE.ROUNDED_RECTANGLE,
    ShapeKind.ELLIPSE: MSO_SHAPE.OVAL,
}

# Map arc closure types to MSO_SHAPE presets
ARC_SHAPE_MAP: dict[ArcType, MSO_SHAPE] = {
    ArcType.OPEN: MSO_SHAPE.ARC,
    ArcType.CHORD: MSO_SHAPE.CHORD,
    ArcType.PIE: MSO_SHAPE.PIE,
}


def _emu_box(rect: Rect) -> tuple:
    return (
        pt_to_emu(rect.x),
        pt_to_emu(rect.y),
        pt_to_emu(rect.width),
        pt_to_emu(rect.height),
    )


def _visual_angle(theta: float, rx: float, ry: float) -> float:
    """Convert a frame-relative arc angle into a true angle (degrees, y-up)."""
    rad = math.radians(theta)
    return math.degrees(math.atan2(ry * math.sin(rad), rx * math.cos(rad)))


def arc_adjustments(arc: Arc) -> tuple[float, float]:
    """Start and end angles for DrawingML arc presets.

    DrawingML measures angles clockwise on screen from the positive x axis
    and sweeps clockwise from the first angle to the second.

    Returns:
        (start, end) in degrees within [0, 360).
    """
    start, extent = arc.start, arc.extent
    if extent < 0:
        start, extent = start + extent, -extent
    rx, ry = arc.width / 2, arc.height / 2
    ccw_start = _visual_angle(start, rx, ry)
    ccw_end = _visual_angle(start + extent, rx, ry)
    return ((-ccw_end) % 360.0, (-ccw_start) % 360.0)


def is_well_aligned(line: Line) -> bool:
    """True when the line starts or ends at its bounding box's top-left corner."""
    bounds = line.bounds()
    for x, y in (line.start, line.end):
        if abs(x - bounds.min_x) <= ASSUME_ZERO and abs(y - bounds.min_y) <= ASSUME_ZERO:
            return True
    return False


class ShapeRenderer:
    """Creates native shapes on a page and records them in its arena."""

    def __init__(self, page: Page) -> None:
        self.page = page
        self.path_renderer = PathRenderer()

    def render(self, shape: Shape) -> PersistedShape:
        """Render device-space geometry as the closest native shape.

        Args:
            shape: Geometry in device units.

        Returns:
            The arena record of the created shape.
        """
        if isinstance(shape, Arc):
            if shape.is_full():
                return self._render_auto_shape(ShapeKind.ELLIPSE, shape.frame)
            return self._render_arc(shape)
        if isinstance(shape, Ellipse):
            return self._render_auto_shape(ShapeKind.ELLIPSE, shape.frame)
        if isinstance(shape, Line):
            return self._render_line(shape)
        if isinstance(shape, Rect):
            return self._render_auto_shape(ShapeKind.RECT, shape)
        if isinstance(shape, RoundRect):
            return self._render_round_rect(shape)

        simplified = decompose(shape)
        if not isinstance(simplified, Path):
            return self.render(simplified)
        return self._render_freeform(simplified)

    def _render_auto_shape(self, kind: ShapeKind, frame: Rect) -> PersistedShape:
        pptx_shape = self.page.container().add_shape(AUTO_SHAPE_MAP[kind], *_emu_box(frame))
        return self.page.add_shape(kind, pptx_shape, frame)

    def _render_round_rect(self, shape: RoundRect) -> PersistedShape:
        record = self._render_auto_shape(ShapeKind.ROUND_RECT, shape.frame)
        short_side = min(shape.width, shape.height)
        if short_side > 0:
            radius = min(shape.arc_width, shape.arc_height) / 2
            record.element.adjustments[0] = clamp(radius / short_side, 0.0, 0.5)
        return record

    def _render_arc(self, arc: Arc) -> PersistedShape:
        """Render a partial arc as an arc, chord or pie preset.

        The preset is framed by the full ellipse; the record is anchored at
        the swept bounds, like any other device-space shape.
        """
        pptx_shape = self.page.container().add_shape(ARC_SHAPE_MAP[arc.arc_type], *_emu_box(arc.frame))
        start, end = arc_adjustments(arc)
        # python-pptx scales adjustment values by 100000; angles are 60000ths of a degree
        pptx_shape.adjustments[0] = start * DML_ANGLE / PPTX_ADJUSTMENT_SCALE
        pptx_shape.adjustments[1] = end * DML_ANGLE / PPTX_ADJUSTMENT_SCALE
        return self.page.add_shape(ShapeKind.ARC, pptx_shape, arc.bounds())

    def _render_line(self, line: Line) -> PersistedShape:
        """Render a straight connector.

        A line whose endpoints sit on the top-right/bottom-left diagonal of
        its box is written flipped, so its begin point is the bottom-left.
        """
        bounds = line.bounds()
        flip_v = not is_well_aligned(line)
        if flip_v:
            begin = (bounds.min_x, bounds.max_y)
            end = (bounds.max_x, bounds.min_y)
        else:
            begin = (bounds.min_x, bounds.min_y)
            end = (bounds.max_x, bounds.max_y)
        connector = self.page.container().add_connector(
            MSO_CONNECTOR.STRAIGHT,
            pt_to_emu(begin[0]),
            pt_to_emu(begin[1]),
            pt_to_emu(end[0]),
            pt_to_emu(end[1]),
        )
        return self.page.add_shape(ShapeKind.LINE, connector, bounds, flip_v=flip_v)

    def _render_freeform(self, path: Path) -> PersistedShape:
        anchor = path.bounds()
        pptx_shape = self.path_renderer.render_path(self.page.container(), path, anchor)
        return self.page.add_shape(ShapeKind.FREEFORM, pptx_shape, anchor)

    def render_picture(self, handle: PictureHandle, anchor: Rect) -> PersistedShape:
        """Place a registered picture at a device rectangle."""
        picture = self.page.container().add_picture(BytesIO(handle.blob), *_emu_box(anchor))
        return self.page.add_shape(ShapeKind.PICTURE, picture, anchor, picture=handle)

    def render_text_box(self, anchor: Rect, rotation: float = 0.0) -> PersistedShape:
        """Create an empty text box; ``rotation`` is clockwise degrees."""
        text_box = self.page.container().add_textbox(*_emu_box(anchor))
        if rotation:
            text_box.rotation = rotation
        return self.page.add_shape(ShapeKind.TEXT_BOX, text_box, anchor, rotation=rotation)

    def render_group(self, name: str, anchor: Rect) -> PersistedShape:
        """Create an empty named group anchored at a device rectangle."""
        group = self.page.container().add_group_shape()
        group._element.find(qn("p:nvGrpSpPr")).find(qn("p:cNvPr")).set("name", name)
        record = self.page.add_shape(ShapeKind.GROUP, group, anchor, name=name)
        self.set_group_anchor(record)
        return record

    def set_group_anchor(self, record: PersistedShape) -> None:
        """Write the record's anchor as the group's frame and child frame.

        python-pptx recomputes group extents from the children whenever one
        is added; this puts the requested frame back.
        """
        grpSpPr = record.element._element.find(qn("p:grpSpPr"))
        xfrm = grpSpPr.find(qn("a:xfrm"))
        if xfrm is None:
            xfrm = etree.Element(qn("a:xfrm"))
            grpSpPr.insert(0, xfrm)
        for child in list(xfrm):
            xfrm.remove(child)

        x, y, cx, cy = (str(int(v)) for v in _emu_box(record.anchor))
        for tag, first, second in (
            ("a:off", ("x", x), ("y", y)),
            ("a:ext", ("cx", cx), ("cy", cy)),
            ("a:chOff", ("x", x), ("y", y)),
            ("a:chExt", ("cx", cx), ("cy", cy)),
        ):
            elem = etree.SubElement(xfrm, qn(tag))
            elem.set(*first)
            elem.set(*second)
