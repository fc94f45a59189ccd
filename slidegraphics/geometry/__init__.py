# slidegraphics geometry: transforms, primitives, area booleans

from .affine import AffineTransform, NoninvertibleTransformError

from .shapes import (
    Arc,
    ArcType,
    Ellipse,
    Line,
    Path,
    PathBuilder,
    Rect,
    RoundRect,
    Segment,
    SegmentType,
    Shape,
    WindingRule,
    transform_shape,
)

from .area import Area

from .classify import decompose
