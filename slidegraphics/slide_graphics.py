"""
slide_graphics.py — Graphics context that renders onto a PowerPoint slide.

Every drawing call becomes zero or more persisted slide shapes:

1. geometry is mapped into device space by the active transform
2. the device clip culls it, passes it through, or cuts it
3. what remains is emitted as the closest native shape and styled
4. paints DrawingML cannot express (gradients) are rasterized to pictures

Text is laid out here (DrawingML text boxes only know a frame, not a
baseline), using the configured metrics provider.
"""

import logging
import math
from enum import Enum
from typing import Any, List, Optional, Sequence

from PIL import Image

from slidegraphics.config import GraphicsSettings, get_settings
from slidegraphics.document import Page, PersistedShape, ShapeKind, SlideDocument
from slidegraphics.effects import Effect, EffectLatch, shadow_spec
from slidegraphics.geometry.affine import AffineTransform, NoninvertibleTransformError
from slidegraphics.geometry.area import Area
from slidegraphics.geometry.classify import decompose
from slidegraphics.geometry.shapes import Line, Path, Rect, Shape, transform_shape
from slidegraphics.graphics import DrawingState, Graphics
from slidegraphics.paint import (
    BLACK,
    WHITE,
    Color,
    DashBucket,
    Paint,
    Stroke,
    is_solid,
    quantize_dash,
    solid_color,
)
from slidegraphics.renderer.raster_renderer import Rasterizer, RasterTile, encode_png, load_image
from slidegraphics.renderer.shape_renderer import ShapeRenderer
from slidegraphics.renderer.style_renderer import StyleRenderer
from slidegraphics.renderer.text_renderer import TextRenderer
from slidegraphics.text_measure import Font, StyledRun, TextMetrics, create_text_metrics
from slidegraphics.units import MIN_CLIP_EXTENT, MIN_SHAPE_EXTENT, TEXT_MIN_ESCAPE

logger = logging.getLogger(__name__)


class ClipState(Enum):
    """Relation of a device box to the device clip."""
    NOT_CLIPPED = "not_clipped"
    INTERSECTS = "intersects"
    OUTSIDE = "outside"


class SlideGraphics(Graphics):
    """Renders drawing operations into the shapes of one slide.

    Args:
        page: Destination page; without one every drawing call returns None.
        background: Slide background colour, also used by ``clear_rect``.
        foreground: Initial paint.
        settings: Rendering settings; defaults to ``get_settings()``.
        metrics: Text metrics provider; defaults to the configured one.
    """

    def __init__(
        self,
        page: Optional[Page] = None,
        background: Color = WHITE,
        foreground: Color = BLACK,
        settings: Optional[GraphicsSettings] = None,
        metrics: Optional[TextMetrics] = None,
    ):
        self.settings = settings or get_settings()
        self.page = page
        self.background = background
        self.metrics = metrics or create_text_metrics(
            self.settings.font_metrics, self.settings.font_dir
        )
        stroke = Stroke()
        if self.settings.force_stroke_width is not None:
            stroke = stroke.with_width(self.settings.force_stroke_width)
        self._state = DrawingState(
            transform=AffineTransform.identity(),
            clip=None,
            paint=foreground,
            stroke=stroke,
            font=Font(family=self.settings.default_font_family, size=self.settings.default_font_size),
        )
        self._init_renderers()
        if page is not None:
            self.style_renderer.apply_background(page.slide, background)

    def _init_renderers(self) -> None:
        self._effects = EffectLatch()
        self._dash = quantize_dash(self._state.stroke.dash, self.document_width)
        self.style_renderer = StyleRenderer()
        self.text_renderer = TextRenderer()
        self.shape_renderer = ShapeRenderer(self.page) if self.page is not None else None
        self.rasterizer = Rasterizer(self.settings.raster_scale, self.settings.font_dir)

    @property
    def document(self) -> Optional[SlideDocument]:
        return self.page.document if self.page is not None else None

    @property
    def document_width(self) -> float:
        return self.page.width if self.page is not None else 0.0

    @property
    def state(self) -> DrawingState:
        return self._state

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def create(self) -> "SlideGraphics":
        """A child sharing this page with a copy of the drawing state.

        The child starts with no pending effect; groups opened on the page
        are shared.
        """
        child = SlideGraphics.__new__(SlideGraphics)
        child.settings = self.settings
        child.page = self.page
        child.background = self.background
        child.metrics = self.metrics
        child._state = self._state.copy()
        child._init_renderers()
        return child

    def dispose(self) -> None:
        self.rasterizer.release()

    # -------------------------------------------------------------------------
    # Transform
    # -------------------------------------------------------------------------

    def get_transform(self) -> AffineTransform:
        return self._state.transform

    def set_transform(self, transform: AffineTransform) -> None:
        self._state.transform = AffineTransform(transform.matrix)

    # -------------------------------------------------------------------------
    # Clip
    # -------------------------------------------------------------------------

    def clip(self, shape: Optional[Shape]) -> None:
        if shape is None:
            return
        area = Area.from_shape(transform_shape(shape, self._state.transform))
        current = self._state.clip
        self._state.clip = area if current is None else current.intersect(area)

    def set_clip(self, shape: Optional[Shape]) -> None:
        if shape is None:
            self._state.clip = None
            return
        self._state.clip = Area.from_shape(transform_shape(shape, self._state.transform))

    def get_clip(self) -> Optional[Shape]:
        """The clip in user space; an empty Path when nothing is visible."""
        if self._state.clip is None:
            return None
        if self._state.clip.is_empty():
            return Path()
        try:
            inverse = self._state.transform.inverse()
        except NoninvertibleTransformError:
            return None
        return self._state.clip.transformed(inverse).to_shape()

    def get_device_clip(self) -> Optional[Area]:
        return self._state.clip

    def _clip_state(self, bounds: Rect) -> ClipState:
        clip = self._state.clip
        if clip is None:
            return ClipState.NOT_CLIPPED
        probe = bounds.widened(MIN_CLIP_EXTENT)
        if clip.contains_rect(probe):
            return ClipState.NOT_CLIPPED
        if clip.intersects_rect(probe):
            return ClipState.INTERSECTS
        return ClipState.OUTSIDE

    # -------------------------------------------------------------------------
    # Paint, stroke, font
    # -------------------------------------------------------------------------

    def get_paint(self) -> Paint:
        return self._state.paint

    def set_paint(self, paint: Optional[Paint]) -> None:
        if paint is not None:
            self._state.paint = paint

    def get_stroke(self) -> Stroke:
        return self._state.stroke

    def set_stroke(self, stroke: Stroke) -> None:
        if self.settings.force_stroke_width is not None:
            stroke = stroke.with_width(self.settings.force_stroke_width)
        self._state.stroke = stroke
        self._dash = quantize_dash(stroke.dash, self.document_width)

    @property
    def dash_bucket(self) -> DashBucket:
        return self._dash

    def get_font(self) -> Font:
        return self._state.font

    def set_font(self, font: Optional[Font]) -> None:
        if font is not None:
            self._state.font = font

    def get_background(self) -> Color:
        return self.background

    # -------------------------------------------------------------------------
    # Shapes
    # -------------------------------------------------------------------------

    def _to_device(self, shape: Shape, filling: bool) -> Optional[Shape]:
        """Transform into device space and apply the clip; None when culled."""
        device = transform_shape(shape, self._state.transform)
        state = self._clip_state(device.bounds())
        if state is ClipState.NOT_CLIPPED:
            return decompose(device)
        if state is ClipState.OUTSIDE:
            logger.debug(f"Culled {type(shape).__name__} outside the clip")
            return None
        clip = self._state.clip
        clipped = clip.clip_area(device) if filling else clip.clip_outline(device)
        return decompose(clipped) if clipped is not None else None

    def _accepts(self, device: Shape) -> bool:
        if self.settings.accept_small_shapes:
            return True
        bounds = device.bounds()
        if bounds.width < MIN_SHAPE_EXTENT and bounds.height < MIN_SHAPE_EXTENT:
            logger.debug(f"Rejected small {type(device).__name__} {bounds}")
            return False
        return True

    def draw(self, shape: Shape) -> Optional[PersistedShape]:
        """Stroke the outline of ``shape``.

        Returns:
            The emitted shape record, or None when nothing was emitted.
        """
        if self.page is None:
            return None
        device = self._to_device(shape, filling=False)
        if device is None or not self._accepts(device):
            return None

        record = self.shape_renderer.render(device)
        color = solid_color(self._state.paint)
        stroke = self._state.stroke
        self.style_renderer.apply_stroke(
            record.element, color, stroke.width, self._dash, stroke.cap, stroke.join
        )
        if record.kind is not ShapeKind.LINE:
            self.style_renderer.clear_fill(record.element)
        record.line_color = color
        record.line_width = stroke.width
        record.dash = self._dash.value
        return record

    def fill(self, shape: Shape) -> Optional[PersistedShape]:
        """Fill the interior of ``shape``, consuming any pending effect.

        Returns:
            The emitted shape record, or None when nothing was emitted.
        """
        effect = self._effects.consume()
        if self.page is None:
            return None
        device = self._to_device(shape, filling=True)
        if device is None or isinstance(device, Line) or not self._accepts(device):
            return None

        record = self.shape_renderer.render(device)
        paint = self._state.paint
        if is_solid(paint):
            self.style_renderer.apply_fill(record.element, paint)
            self.style_renderer.clear_line(record.element)
            record.fill_color = paint
            self._apply_effect(record, effect)
        else:
            self.style_renderer.clear_fill(record.element)
            self.style_renderer.clear_line(record.element)
            picture = self._fill_with_raster(device, paint)
            if picture is not None:
                self._apply_effect(picture, effect)
        return record

    def _apply_effect(self, record: PersistedShape, effect: Optional[Effect]) -> None:
        if effect is None:
            return
        spec = shadow_spec(effect)
        self.style_renderer.apply_shadow(record.element, spec)
        record.effect = spec.tag

    def _fill_with_raster(self, device: Shape, paint: Paint) -> Optional[PersistedShape]:
        try:
            tile = self.rasterizer.rasterize_fill(device, paint, self._state.transform)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not rasterize {type(paint).__name__} fill: {e}")
            return None
        return self._place_tile(tile)

    def _place_tile(self, tile: Optional[RasterTile]) -> Optional[PersistedShape]:
        """Encode a raster tile and place it as a picture."""
        if tile is None:
            return None
        try:
            handle = self.document.add_picture(encode_png(tile.image))
        except (OSError, ValueError) as e:
            logger.warning(f"Could not encode raster picture: {e}")
            return None
        finally:
            self.rasterizer.release()
        return self.shape_renderer.render_picture(handle, tile.anchor)

    # -------------------------------------------------------------------------
    # Text
    # -------------------------------------------------------------------------

    def draw_string(self, text: str, x: float, y: float) -> Optional[PersistedShape]:
        """Draw ``text`` with the current font, baseline starting at (x, y)."""
        if self.page is None or not text:
            return None
        return self._emit_text(text, x, y, self._state.font, solid_color(self._state.paint))

    def draw_rich_string(
        self, runs: Sequence[StyledRun], x: float, y: float
    ) -> List[PersistedShape]:
        """Draw styled runs left to right from (x, y).

        Adjacent runs with the same font and colour are merged first. Each run
        is shifted by its font's offset.
        """
        if self.page is None:
            return []
        base_color = solid_color(self._state.paint)
        merged: List[StyledRun] = []
        for run in runs:
            if not run.text:
                continue
            if merged and merged[-1].font == run.font and merged[-1].color == run.color:
                merged[-1] = merged[-1].model_copy(update={"text": merged[-1].text + run.text})
            else:
                merged.append(run)

        emitted = []
        cursor = x
        for run in merged:
            font = run.font or self._state.font
            record = self._emit_text(
                run.text,
                cursor + font.offset_x,
                y + font.offset_y,
                font,
                run.color or base_color,
            )
            if record is not None:
                emitted.append(record)
            cursor += self.metrics.advance(run.text, font)
        return emitted

    def _emit_text(
        self, text: str, x: float, y: float, font: Font, color: Color
    ) -> Optional[PersistedShape]:
        metrics = self.metrics
        line = metrics.line_metrics(font)
        advance = metrics.advance(text, font)
        visual = metrics.visual_bounds(text, font)

        transform = self._state.transform
        angle = transform.rotation_angle()
        rotated = abs(angle) > TEXT_MIN_ESCAPE

        # Slack keeps the destination renderer from wrapping or clipping glyphs
        slack = (len(text) // 2 + 1) * metrics.char_width("X", font)
        width = advance + slack + (slack if rotated else 0.0)
        height = line.height + (slack if rotated else 0.0)
        local = Rect(x + min(0.0, visual.x), y - line.ascent, width, height)

        scale = transform.uniform_scale()
        cx, cy = transform.transform_point(*local.center)
        anchor = Rect(cx - width * scale / 2, cy - height * scale / 2, width * scale, height * scale)
        if not self.settings.accept_small_shapes and (
            anchor.width < MIN_SHAPE_EXTENT or anchor.height < MIN_SHAPE_EXTENT
        ):
            logger.debug(f"Rejected small text {text!r}")
            return None

        state = self._clip_state(transform_shape(local, transform).bounds())
        if state is ClipState.OUTSIDE:
            logger.debug(f"Culled text {text!r} outside the clip")
            return None
        if state is ClipState.INTERSECTS and self.settings.hard_clip_texts:
            return self._emit_clipped_text(text, x, y, font, color)

        font_index = self.document.font_table.lookup(font.family)
        typeface = (
            self.document.font_table.typeface(font_index) if font_index is not None else font.family
        )
        record = self.shape_renderer.render_text_box(
            anchor, math.degrees(angle) if rotated else 0.0
        )
        self.text_renderer.render(
            record.element,
            text,
            font.size * scale,
            typeface,
            color,
            bold=font.bold,
            italic=font.italic,
        )
        record.text = text
        record.font_index = font_index
        record.fill_color = color
        return record

    def _emit_clipped_text(
        self, text: str, x: float, y: float, font: Font, color: Color
    ) -> Optional[PersistedShape]:
        try:
            tile = self.rasterizer.rasterize_text(
                text, font, color, x, y, self._state.transform, self._state.clip
            )
        except (OSError, ValueError) as e:
            logger.warning(f"Could not rasterize clipped text {text!r}: {e}")
            return None
        record = self._place_tile(tile)
        if record is not None:
            record.text = text
        return record

    # -------------------------------------------------------------------------
    # Images
    # -------------------------------------------------------------------------

    def draw_image(
        self,
        image: Any,
        x: float = 0.0,
        y: float = 0.0,
        width: Optional[float] = None,
        height: Optional[float] = None,
    ) -> Optional[PersistedShape]:
        """Draw an image with its top-left at (x, y), optionally resized."""
        if self.page is None:
            return None
        try:
            source = load_image(image)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read image: {e}")
            return None
        width = source.width if width is None else width
        height = source.height if height is None else height
        if width == 0 or height == 0 or source.width == 0 or source.height == 0:
            return None
        placement = AffineTransform.translation(x, y).concatenate(
            AffineTransform.scaling(width / source.width, height / source.height)
        )
        return self.draw_image_transformed(source, placement)

    def draw_image_transformed(
        self, image: Any, transform: AffineTransform
    ) -> Optional[PersistedShape]:
        """Draw an image whose pixel grid is mapped to user space by ``transform``."""
        if self.page is None:
            return None
        try:
            source = load_image(image)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read image: {e}")
            return None

        image_to_device = self._state.transform.concatenate(transform)
        footprint = Rect(0, 0, source.width, source.height).transformed(image_to_device)
        state = self._clip_state(footprint.bounds())
        if state is ClipState.OUTSIDE:
            logger.debug("Culled image outside the clip")
            return None

        if state is ClipState.NOT_CLIPPED and image_to_device.is_axis_aligned():
            if image_to_device.m00 < 0:
                source = source.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
            if image_to_device.m11 < 0:
                source = source.transpose(Image.Transpose.FLIP_TOP_BOTTOM)
            tile = RasterTile(source, footprint.bounds())
        else:
            try:
                tile = self.rasterizer.rasterize_image(source, image_to_device, self._state.clip)
            except (OSError, ValueError) as e:
                logger.warning(f"Could not resample image: {e}")
                return None
        return self._place_tile(tile)

    # -------------------------------------------------------------------------
    # Grouping and effects
    # -------------------------------------------------------------------------

    def start_group(self, name: str, bounds_source: Any) -> Optional[PersistedShape]:
        """Open a named group; shapes emitted until ``end_group`` nest in it.

        Args:
            name: Group name shown in the selection pane.
            bounds_source: A Shape, or any object exposing ``bounds_in_parent``
                (a Shape or Rect in user space).
        """
        if self.page is None or not self.settings.support_groups:
            return None
        source = getattr(bounds_source, "bounds_in_parent", bounds_source)
        if callable(source):
            source = source()
        anchor = transform_shape(source, self._state.transform).bounds()
        record = self.shape_renderer.render_group(name, anchor)
        self.page.push_group(record)
        return record

    def end_group(self) -> None:
        if self.page is None or not self.settings.support_groups:
            return
        record = self.page.pop_group()
        if record is not None:
            self.shape_renderer.set_group_anchor(record)

    def apply_effect(self, node: Any, effect: Any) -> None:
        """Store a drop or inner shadow for the next ``fill``.

        Any other effect clears the pending one.
        """
        self._effects.set(effect)

    @property
    def pending_effect(self) -> Optional[Effect]:
        return self._effects.pending
