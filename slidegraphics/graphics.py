"""
graphics.py — The drawing capability set and the state it operates on.

``Graphics`` is the interface a scene traversal talks to: transforms, clips,
paints, strokes, fonts, shape/text/image drawing, grouping and effects.
Concrete contexts implement the core operations; the convenience forms
(rectangles, ovals, polygons...) are expressed here in terms of ``draw`` and
``fill`` so every backend shares them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Any, Optional, Sequence

from slidegraphics.geometry.affine import AffineTransform
from slidegraphics.geometry.area import Area
from slidegraphics.geometry.shapes import Arc, ArcType, Ellipse, Line, Path, Rect, RoundRect, Shape
from slidegraphics.paint import Color, Paint, Stroke
from slidegraphics.text_measure import Font, StyledRun


@dataclass
class DrawingState:
    """Mutable state of one graphics context."""
    transform: AffineTransform
    clip: Optional[Area]
    paint: Paint
    stroke: Stroke
    font: Font

    def copy(self) -> "DrawingState":
        """Independent copy; every member is an immutable value."""
        return replace(self)


class Graphics(ABC):
    """Immediate-mode 2D drawing interface."""

    # -------------------------------------------------------------------------
    # Transform
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_transform(self) -> AffineTransform:
        ...

    @abstractmethod
    def set_transform(self, transform: AffineTransform) -> None:
        ...

    def transform(self, transform: AffineTransform) -> None:
        """Concatenate: ``transform`` applies before the current transform."""
        self.set_transform(self.get_transform().concatenate(transform))

    def translate(self, tx: float, ty: float) -> None:
        self.transform(AffineTransform.translation(tx, ty))

    def scale(self, sx: float, sy: float) -> None:
        self.transform(AffineTransform.scaling(sx, sy))

    def rotate(self, theta: float, x: float = 0.0, y: float = 0.0) -> None:
        """Rotate by ``theta`` radians, optionally about (x, y)."""
        self.transform(AffineTransform.rotation(theta, x, y))

    def shear(self, shx: float, shy: float) -> None:
        self.transform(AffineTransform.shearing(shx, shy))

    # -------------------------------------------------------------------------
    # Clip
    # -------------------------------------------------------------------------

    @abstractmethod
    def clip(self, shape: Optional[Shape]) -> None:
        """Intersect the clip with ``shape`` (user space)."""

    @abstractmethod
    def set_clip(self, shape: Optional[Shape]) -> None:
        """Replace the clip with ``shape`` (user space); None removes it."""

    @abstractmethod
    def get_clip(self) -> Optional[Shape]:
        """The clip in user space, or None when unclipped."""

    def clip_rect(self, x: float, y: float, width: float, height: float) -> None:
        self.clip(Rect(x, y, width, height))

    def set_clip_rect(self, x: float, y: float, width: float, height: float) -> None:
        self.set_clip(Rect(x, y, width, height))

    def get_clip_bounds(self) -> Optional[Rect]:
        clip = self.get_clip()
        return None if clip is None else clip.bounds()

    # -------------------------------------------------------------------------
    # Paint, stroke, font
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_paint(self) -> Paint:
        ...

    @abstractmethod
    def set_paint(self, paint: Optional[Paint]) -> None:
        ...

    def get_color(self) -> Optional[Color]:
        """The current paint when it is a solid colour."""
        paint = self.get_paint()
        return paint if isinstance(paint, Color) else None

    def set_color(self, color: Optional[Color]) -> None:
        self.set_paint(color)

    @abstractmethod
    def get_stroke(self) -> Stroke:
        ...

    @abstractmethod
    def set_stroke(self, stroke: Stroke) -> None:
        ...

    @abstractmethod
    def get_font(self) -> Font:
        ...

    @abstractmethod
    def set_font(self, font: Optional[Font]) -> None:
        ...

    @abstractmethod
    def get_background(self) -> Color:
        ...

    # -------------------------------------------------------------------------
    # Drawing
    # -------------------------------------------------------------------------

    @abstractmethod
    def draw(self, shape: Shape) -> Any:
        """Stroke the outline of ``shape`` with the current stroke and paint."""

    @abstractmethod
    def fill(self, shape: Shape) -> Any:
        """Fill the interior of ``shape`` with the current paint."""

    @abstractmethod
    def draw_string(self, text: str, x: float, y: float) -> Any:
        """Draw ``text`` with its baseline starting at (x, y)."""

    @abstractmethod
    def draw_rich_string(self, runs: Sequence[StyledRun], x: float, y: float) -> list:
        ...

    @abstractmethod
    def draw_image(
        self,
        image: Any,
        x: float = 0.0,
        y: float = 0.0,
        width: Optional[float] = None,
        height: Optional[float] = None,
    ) -> Any:
        ...

    @abstractmethod
    def draw_image_transformed(self, image: Any, transform: AffineTransform) -> Any:
        ...

    def draw_line(self, x1: float, y1: float, x2: float, y2: float) -> Any:
        return self.draw(Line(x1, y1, x2, y2))

    def draw_rect(self, x: float, y: float, width: float, height: float) -> Any:
        return self.draw(Rect(x, y, width, height))

    def fill_rect(self, x: float, y: float, width: float, height: float) -> Any:
        return self.fill(Rect(x, y, width, height))

    def clear_rect(self, x: float, y: float, width: float, height: float) -> Any:
        """Fill a rectangle with the background colour, keeping the paint."""
        paint = self.get_paint()
        self.set_paint(self.get_background())
        try:
            return self.fill_rect(x, y, width, height)
        finally:
            self.set_paint(paint)

    def draw_oval(self, x: float, y: float, width: float, height: float) -> Any:
        return self.draw(Ellipse(x, y, width, height))

    def fill_oval(self, x: float, y: float, width: float, height: float) -> Any:
        return self.fill(Ellipse(x, y, width, height))

    def draw_round_rect(
        self, x: float, y: float, width: float, height: float, arc_width: float, arc_height: float
    ) -> Any:
        return self.draw(RoundRect(x, y, width, height, arc_width, arc_height))

    def fill_round_rect(
        self, x: float, y: float, width: float, height: float, arc_width: float, arc_height: float
    ) -> Any:
        return self.fill(RoundRect(x, y, width, height, arc_width, arc_height))

    def draw_arc(
        self, x: float, y: float, width: float, height: float, start: float, extent: float
    ) -> Any:
        return self.draw(Arc(x, y, width, height, start, extent, ArcType.OPEN))

    def fill_arc(
        self, x: float, y: float, width: float, height: float, start: float, extent: float
    ) -> Any:
        return self.fill(Arc(x, y, width, height, start, extent, ArcType.PIE))

    def draw_polyline(self, xs: Sequence[float], ys: Sequence[float]) -> Any:
        return self.draw(Path.from_points(zip(xs, ys), closed=False))

    def draw_polygon(self, xs: Sequence[float], ys: Sequence[float]) -> Any:
        return self.draw(Path.from_points(zip(xs, ys), closed=True))

    def fill_polygon(self, xs: Sequence[float], ys: Sequence[float]) -> Any:
        return self.fill(Path.from_points(zip(xs, ys), closed=True))

    def draw_glyph_outline(self, outline: Shape, x: float, y: float) -> Any:
        """Fill pre-shaped glyph outlines positioned at (x, y)."""
        return self.fill(outline.transformed(AffineTransform.translation(x, y)))

    # -------------------------------------------------------------------------
    # Grouping and effects
    # -------------------------------------------------------------------------

    @abstractmethod
    def start_group(self, name: str, bounds_source: Any) -> None:
        ...

    @abstractmethod
    def end_group(self) -> None:
        ...

    @abstractmethod
    def apply_effect(self, node: Any, effect: Any) -> None:
        """Announce an effect for the next fill."""

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @abstractmethod
    def create(self) -> "Graphics":
        """A child context with a copy of this context's state."""

    @abstractmethod
    def dispose(self) -> None:
        ...

    def create_clipped(self, x: float, y: float, width: float, height: float) -> "Graphics":
        """A child context translated to (x, y) and clipped to the given size."""
        child = self.create()
        child.translate(x, y)
        child.clip_rect(0, 0, width, height)
        return child
