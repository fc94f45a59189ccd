"""slidegraphics - an immediate-mode 2D graphics context that renders into
PowerPoint slides through python-pptx.
"""

from slidegraphics.config import GraphicsSettings, configure_logging, get_settings
from slidegraphics.document import Page, PersistedShape, PictureHandle, ShapeKind, SlideDocument
from slidegraphics.effects import DropShadow, InnerShadow
from slidegraphics.geometry import (
    AffineTransform,
    Arc,
    ArcType,
    Area,
    Ellipse,
    Line,
    Path,
    PathBuilder,
    Rect,
    RoundRect,
    WindingRule,
)
from slidegraphics.graphics import DrawingState, Graphics
from slidegraphics.paint import (
    BLACK,
    WHITE,
    Color,
    CycleMethod,
    GradientStop,
    LinearGradient,
    RadialGradient,
    Stroke,
)
from slidegraphics.slide_graphics import SlideGraphics
from slidegraphics.text_measure import Font, StyledRun
from slidegraphics.renderer.pptx_writer import PPTXWriter, export_document

__version__ = "0.1.0"
