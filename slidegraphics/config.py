"""Rendering configuration."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from slidegraphics.units import DEFAULT_FONT_FAMILY, DEFAULT_FONT_SIZE_PT


class GraphicsSettings(BaseSettings):
    """Graphics context settings, overridable via SLIDEGRAPHICS_* variables."""

    model_config = SettingsConfigDict(
        env_prefix="SLIDEGRAPHICS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Emission policy
    accept_small_shapes: bool = True
    hard_clip_texts: bool = False
    support_groups: bool = True
    force_stroke_width: Optional[float] = Field(default=None, gt=0)

    # Rasterization (pixels per device unit)
    raster_scale: float = Field(default=1.0, gt=0, le=16)

    # Text
    font_metrics: Literal["pillow", "approximate"] = "pillow"
    font_dir: Optional[Path] = None
    default_font_family: str = DEFAULT_FONT_FAMILY
    default_font_size: float = Field(default=DEFAULT_FONT_SIZE_PT, gt=0)

    # Logging
    log_level: str = "WARNING"


@lru_cache()
def get_settings() -> GraphicsSettings:
    """Get cached settings instance."""
    return GraphicsSettings()


def configure_logging(level: str = "WARNING") -> logging.Logger:
    """Attach a stream handler to the package logger and set its level."""
    logger = logging.getLogger("slidegraphics")
    logger.setLevel(level.upper())
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(handler)
    return logger
