"""Shadow effects and the single-use pending-effect latch.

A scene traversal announces an effect for a node just before the fill that
paints it. The context stores it in an ``EffectLatch``; the next fill takes
it (whether or not that fill ends up emitting anything) and the latch is
empty again.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from slidegraphics.paint import BLACK, Color
from slidegraphics.units import DML_ANGLE, DML_PERCENT, pt_to_emu

logger = logging.getLogger(__name__)

# Drop shadows are drawn slightly larger than the shape (66847 / 65536)
DROP_SHADOW_SCALE = 66847 / 65536
INNER_SHADOW_SCALE = 0.95
# Shadow colours are written at half their opacity
SHADOW_OPACITY_FACTOR = 0.5


class DropShadow(BaseModel):
    """Shadow cast outside the shape."""

    model_config = ConfigDict(frozen=True)

    color: Color = BLACK
    width: float = Field(default=21.0, ge=0, description="Blur kernel width in device units")
    offset_x: float = 0.0
    offset_y: float = 0.0


class InnerShadow(BaseModel):
    """Shadow cast inside the shape's edges."""

    model_config = ConfigDict(frozen=True)

    color: Color = BLACK
    width: float = Field(default=21.0, ge=0, description="Blur kernel width in device units")
    offset_x: float = 0.0
    offset_y: float = 0.0


Effect = Union[DropShadow, InnerShadow]


@dataclass(frozen=True)
class ShadowSpec:
    """DrawingML attributes for an ``a:outerShdw`` / ``a:innerShdw`` element."""
    tag: str
    blur_rad: int
    dist: int
    dir: int
    color_hex: str
    alpha: int
    scale: int


def shadow_spec(effect: Effect) -> ShadowSpec:
    """Translate an effect into DrawingML shadow parameters."""
    outer = isinstance(effect, DropShadow)
    distance = math.hypot(effect.offset_x, effect.offset_y)
    angle = math.degrees(math.atan2(effect.offset_y, effect.offset_x)) % 360 if distance else 0.0
    scale = DROP_SHADOW_SCALE if outer else INNER_SHADOW_SCALE
    return ShadowSpec(
        tag="a:outerShdw" if outer else "a:innerShdw",
        blur_rad=int(pt_to_emu(effect.width / 2)),
        dist=int(pt_to_emu(distance)),
        dir=int(round(angle * DML_ANGLE)),
        color_hex=effect.color.hex,
        alpha=int(round(effect.color.opacity * SHADOW_OPACITY_FACTOR * DML_PERCENT)),
        scale=int(round(scale * DML_PERCENT)),
    )


class EffectLatch:
    """Holds at most one effect until the next fill consumes it."""

    def __init__(self) -> None:
        self._pending: Optional[Effect] = None

    @property
    def pending(self) -> Optional[Effect]:
        return self._pending

    def set(self, effect: Any) -> None:
        """Store a recognized effect; anything else clears the latch."""
        if isinstance(effect, (DropShadow, InnerShadow)):
            self._pending = effect
        else:
            if effect is not None:
                logger.debug(f"Ignoring unsupported effect {type(effect).__name__}")
            self._pending = None

    def consume(self) -> Optional[Effect]:
        effect, self._pending = self._pending, None
        return effect

    def clear(self) -> None:
        self._pending = None
