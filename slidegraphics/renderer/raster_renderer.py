"""Rasterize what DrawingML cannot express natively.

Three things end up as embedded PNG pictures:

- fills with gradient paints, evaluated per pixel through the user transform
- image blits that are rotated, sheared or partly clipped
- text that must be hard-clipped to a non-containing clip

Every raster is produced for an integer device rectangle (the picture's
anchor) at ``scale`` pixels per device unit.
"""

import math
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import List, Optional

import numpy as np
from PIL import Image, ImageChops, ImageDraw, ImageFont
from shapely.geometry.base import BaseGeometry

from slidegraphics.geometry.affine import AffineTransform
from slidegraphics.geometry.area import Area, polygons_of, shape_to_geometry
from slidegraphics.geometry.shapes import Rect, Shape
from slidegraphics.paint import Color, LinearGradient, RadialGradient
from slidegraphics.text_measure import Font, get_font

# Transparent border around locally rendered text, in pixels
TEXT_PADDING_PX = 2


@dataclass
class RasterTile:
    """A rendered RGBA image and the device rectangle it covers."""
    image: Image.Image
    anchor: Rect


def encode_png(image: Image.Image) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def load_image(source) -> Image.Image:
    """Open bytes, a path or a PIL image as an RGBA image.

    Raises:
        OSError: If the source cannot be decoded.
    """
    if isinstance(source, Image.Image):
        image = source
    elif isinstance(source, (bytes, bytearray)):
        image = Image.open(BytesIO(source))
    else:
        image = Image.open(Path(source))
    image.load()
    return image if image.mode == "RGBA" else image.convert("RGBA")


class Rasterizer:
    """Renders device-space rasters at a fixed resolution."""

    def __init__(self, scale: float = 1.0, font_dir: Optional[Path] = None):
        self.scale = scale
        self.font_dir = font_dir
        self._surfaces: List[Image.Image] = []

    # -------------------------------------------------------------------------
    # Surfaces
    # -------------------------------------------------------------------------

    def _surface(self, mode: str, size: tuple, color=0) -> Image.Image:
        image = Image.new(mode, size, color)
        self._surfaces.append(image)
        return image

    def _pixel_size(self, anchor: Rect) -> tuple:
        return (
            max(1, int(math.ceil(anchor.width * self.scale))),
            max(1, int(math.ceil(anchor.height * self.scale))),
        )

    def _pixel_to_device(self, anchor: Rect) -> AffineTransform:
        """Maps surface pixel coordinates to device coordinates."""
        return AffineTransform.translation(anchor.x, anchor.y).concatenate(
            AffineTransform.scaling(1.0 / self.scale, 1.0 / self.scale)
        )

    def _mask(self, geometry: BaseGeometry, anchor: Rect, size: tuple) -> Image.Image:
        """8-bit coverage mask of device geometry over the anchor rectangle."""
        mask = self._surface("L", size, 0)
        draw = ImageDraw.Draw(mask)

        def to_pixels(coords) -> list:
            return [((x - anchor.x) * self.scale, (y - anchor.y) * self.scale) for x, y in coords]

        for polygon in polygons_of(geometry):
            draw.polygon(to_pixels(polygon.exterior.coords), fill=255)
            for interior in polygon.interiors:
                draw.polygon(to_pixels(interior.coords), fill=0)
        return mask

    def _apply_mask(self, image: Image.Image, mask: Image.Image) -> None:
        alpha = ImageChops.multiply(image.getchannel("A"), mask)
        image.putalpha(alpha)

    def release(self) -> None:
        """Close every surface allocated since the last release."""
        for surface in self._surfaces:
            surface.close()
        self._surfaces.clear()

    # -------------------------------------------------------------------------
    # Gradient fills
    # -------------------------------------------------------------------------

    def rasterize_fill(
        self,
        outline: Shape,
        paint: LinearGradient | RadialGradient,
        user_to_device: AffineTransform,
    ) -> Optional[RasterTile]:
        """Fill a device-space outline with a gradient.

        Args:
            outline: The filled shape in device units.
            paint: The gradient, defined in user space.
            user_to_device: Transform active when the paint was set.

        Returns:
            The tile, or None when the outline has no area.

        Raises:
            NoninvertibleTransformError: If the transform is singular.
        """
        geometry = shape_to_geometry(outline)
        if geometry.is_empty:
            return None
        anchor = outline.bounds().int_bounds()
        size = self._pixel_size(anchor)

        # Pixel centres back into user space
        device_to_user = user_to_device.inverse().concatenate(self._pixel_to_device(anchor))
        cols, rows = np.meshgrid(np.arange(size[0]) + 0.5, np.arange(size[1]) + 0.5)
        user = device_to_user.apply(np.column_stack([cols.ravel(), rows.ravel()]))
        xs = user[:, 0].reshape(cols.shape)
        ys = user[:, 1].reshape(cols.shape)

        image = Image.fromarray(paint.sample(xs, ys))
        self._surfaces.append(image)
        self._apply_mask(image, self._mask(geometry, anchor, size))
        return RasterTile(image, anchor)

    # -------------------------------------------------------------------------
    # Image blits
    # -------------------------------------------------------------------------

    def rasterize_image(
        self,
        image: Image.Image,
        image_to_device: AffineTransform,
        clip: Optional[Area],
    ) -> Optional[RasterTile]:
        """Resample an image into its (clipped) device bounds.

        Args:
            image: RGBA source image.
            image_to_device: Maps image pixel coordinates to device units.
            clip: Device clip, or None.

        Returns:
            The tile, or None when nothing remains visible.
        """
        footprint = Area.from_shape(Rect(0, 0, image.width, image.height).transformed(image_to_device))
        visible = footprint if clip is None else footprint.intersect(clip)
        bounds = visible.bounds()
        if bounds is None:
            return None
        anchor = bounds.int_bounds()
        size = self._pixel_size(anchor)

        pixel_map = image_to_device.inverse().concatenate(self._pixel_to_device(anchor))
        result = image.transform(
            size,
            Image.Transform.AFFINE,
            (pixel_map.m00, pixel_map.m01, pixel_map.m02, pixel_map.m10, pixel_map.m11, pixel_map.m12),
            resample=Image.Resampling.BILINEAR,
        )
        self._surfaces.append(result)
        if clip is not None:
            self._apply_mask(result, self._mask(clip.geometry, anchor, size))
        return RasterTile(result, anchor)

    # -------------------------------------------------------------------------
    # Hard-clipped text
    # -------------------------------------------------------------------------

    def rasterize_text(
        self,
        text: str,
        font: Font,
        color: Color,
        x: float,
        y: float,
        user_to_device: AffineTransform,
        clip: Area,
    ) -> Optional[RasterTile]:
        """Render a text run and cut it to the clip's bounding box.

        The run is drawn unrotated at the resolution it will have on the
        page, then mapped through the user transform into a surface covering
        the clip bounds and masked by the clip.

        Args:
            text: The run.
            font: Font in user units.
            color: Text colour.
            x: Baseline start, user space.
            y: Baseline, user space.
            user_to_device: The active transform.
            clip: Device clip.

        Returns:
            The tile, or None when the clip is empty.
        """
        clip_bounds = clip.bounds()
        if clip_bounds is None:
            return None
        anchor = clip_bounds.int_bounds()
        size = self._pixel_size(anchor)

        resolution = self.scale * max(user_to_device.uniform_scale(), 1e-6)
        pil_font = get_font(
            font.family,
            max(1, round(font.size * resolution)),
            font.bold,
            font.italic,
            self.font_dir,
        )
        if isinstance(pil_font, ImageFont.FreeTypeFont):
            left, top, right, bottom = pil_font.getbbox(text, anchor="ls")
        else:
            left, top, right, bottom = pil_font.getbbox(text)
            top, bottom = top - bottom, 0
        pad = TEXT_PADDING_PX
        local = self._surface(
            "RGBA",
            (int(right - left) + 2 * pad, int(bottom - top) + 2 * pad),
            (0, 0, 0, 0),
        )
        draw = ImageDraw.Draw(local)
        origin = (pad - left, pad - top)
        if isinstance(pil_font, ImageFont.FreeTypeFont):
            draw.text(origin, text, font=pil_font, fill=color.rgba(), anchor="ls")
        else:
            draw.text((origin[0], pad), text, font=pil_font, fill=color.rgba())

        # Surface pixel -> device -> user -> local text pixel
        user_to_local = AffineTransform.translation(*origin).concatenate(
            AffineTransform.scaling(resolution, resolution)
        ).concatenate(AffineTransform.translation(-x, -y))
        pixel_map = user_to_local.concatenate(user_to_device.inverse()).concatenate(
            self._pixel_to_device(anchor)
        )
        result = local.transform(
            size,
            Image.Transform.AFFINE,
            (pixel_map.m00, pixel_map.m01, pixel_map.m02, pixel_map.m10, pixel_map.m11, pixel_map.m12),
            resample=Image.Resampling.BILINEAR,
        )
        self._surfaces.append(result)
        self._apply_mask(result, self._mask(clip.geometry, anchor, size))
        return RasterTile(result, anchor)
