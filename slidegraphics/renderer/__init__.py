"""PPTX renderer module - turns device-space geometry into slide objects.

- Native auto shapes, connectors, pictures, text boxes and groups
- Freeform paths with Bezier curve support
- Line, fill, alpha, dash and shadow styles
- Rasterized fallbacks (gradients, resampled images, clipped text)

The export helpers live in ``slidegraphics.renderer.pptx_writer``; they sit on
top of the graphics context and are imported from there.
"""

from slidegraphics.renderer.path_renderer import PathRenderer
from slidegraphics.renderer.raster_renderer import Rasterizer, RasterTile
from slidegraphics.renderer.shape_renderer import ShapeRenderer
from slidegraphics.renderer.style_renderer import StyleRenderer
from slidegraphics.renderer.text_renderer import TextRenderer

__all__ = [
    "PathRenderer",
    "Rasterizer",
    "RasterTile",
    "ShapeRenderer",
    "StyleRenderer",
    "TextRenderer",
]
