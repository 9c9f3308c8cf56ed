"""
Adjustment pipeline: runs the six colour stages over a whole raster.

Stateless: every call starts from the caller's buffer, never writes to it,
and hands back a buffer of the same size that nothing else references.
"""
from __future__ import annotations
from collections.abc import Mapping
from typing import Any
import logging

from ..models.adjustment_parameters import AdjustmentParameters
from ..models.raster_buffer import RasterBuffer
from .stages import STAGES

logger = logging.getLogger(__name__)


def apply_adjustments(
    image: RasterBuffer,
    params: AdjustmentParameters | Mapping[str, Any] | None = None,
) -> RasterBuffer:
    """
    Apply Brightness → Contrast → Saturation → Temperature → Fade → Vignette.

    Args:
        image: Source buffer, left untouched.
        params: Adjustment name → value in [-100, 100]; missing names are neutral.

    Returns:
        RasterBuffer: New buffer with the adjusted pixels.
    """
    if not isinstance(params, AdjustmentParameters):
        params = AdjustmentParameters(params)

    pixels = image.pixels.copy()
    for stage in STAGES:
        value = params.value_of(stage.adjustment)
        result = stage.run(pixels, value)
        if result is not pixels:
            logger.debug(f"Applied {stage.name}={value} to {image.width}x{image.height}")
        pixels = result

    return RasterBuffer(pixels)
