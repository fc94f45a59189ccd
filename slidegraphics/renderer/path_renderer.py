"""Render freeform path shapes to PowerPoint.

Builds custom geometry XML so that cubic and quadratic Bezier segments
survive as curves instead of being flattened into polylines.
"""

from typing import Any

from lxml import etree
from pptx.enum.shapes import MSO_SHAPE
from pptx.oxml.ns import qn

from slidegraphics.geometry.shapes import Path, Rect, SegmentType
from slidegraphics.units import EMU_PER_PT, pt_to_emu


class PathRenderer:
    """Renders paths as custom-geometry shapes."""

    def render_path(self, shapes: Any, path: Path, anchor: Rect) -> Any:
        """Render a path inside its anchor rectangle.

        Creates a rectangle, then swaps its preset geometry for custom
        geometry whose coordinates are EMU offsets from the anchor origin.

        Args:
            shapes: The python-pptx shape collection to add to.
            path: The path in device units.
            anchor: The path's device bounding box.

        Returns:
            The created PowerPoint shape.
        """
        left, top = pt_to_emu(anchor.x), pt_to_emu(anchor.y)
        width = max(1, pt_to_emu(anchor.width))
        height = max(1, pt_to_emu(anchor.height))
        placeholder = shapes.add_shape(MSO_SHAPE.RECTANGLE, left, top, width, height)

        # Now replace its geometry with custom geometry
        spPr = placeholder._element.spPr
        prstGeom = spPr.find(qn("a:prstGeom"))
        position = list(spPr).index(prstGeom) if prstGeom is not None else len(spPr)
        if prstGeom is not None:
            spPr.remove(prstGeom)

        custGeom = etree.Element(qn("a:custGeom"))
        spPr.insert(position, custGeom)
        etree.SubElement(custGeom, qn("a:avLst"))
        etree.SubElement(custGeom, qn("a:gdLst"))
        etree.SubElement(custGeom, qn("a:ahLst"))
        etree.SubElement(custGeom, qn("a:cxnLst"))

        rect = etree.SubElement(custGeom, qn("a:rect"))
        rect.set("l", "0")
        rect.set("t", "0")
        rect.set("r", "r")
        rect.set("b", "b")

        pathLst = etree.SubElement(custGeom, qn("a:pathLst"))
        path_elem = etree.SubElement(pathLst, qn("a:path"))
        path_elem.set("w", str(width))
        path_elem.set("h", str(height))

        self._build_path_commands(path_elem, path, anchor)
        return placeholder

    def _build_path_commands(self, path_elem: Any, path: Path, anchor: Rect) -> None:
        """Build XML path command elements.

        Args:
            path_elem: The <a:path> element to populate.
            path: The path in device units.
            anchor: Origin the coordinates are made relative to.
        """
        tags = {
            SegmentType.MOVE_TO: "a:moveTo",
            SegmentType.LINE_TO: "a:lnTo",
            SegmentType.QUAD_TO: "a:quadBezTo",
            SegmentType.CURVE_TO: "a:cubicBezTo",
        }
        for seg in path.segments:
            if seg.type is SegmentType.CLOSE:
                etree.SubElement(path_elem, qn("a:close"))
                continue
            command = etree.SubElement(path_elem, qn(tags[seg.type]))
            for x, y in seg.points:
                self._add_point(command, x - anchor.x, y - anchor.y)

    def _add_point(self, command: Any, x: float, y: float) -> None:
        pt = etree.SubElement(command, qn("a:pt"))
        pt.set("x", str(max(0, int(round(x * EMU_PER_PT)))))
        pt.set("y", str(max(0, int(round(y * EMU_PER_PT)))))
