from __future__ import annotations
from collections.abc import Mapping
from typing import Any
import logging

from ..models.adjustment_parameters import AdjustmentParameters
from ..models.raster_buffer import RasterBuffer
from ..pipeline import apply_adjustments
from .preset_service import PresetService

logger = logging.getLogger(__name__)


class AdjustmentService:
    """
    Applies adjustment parameters (explicit or from a preset) to raster buffers.
    No I/O here, works only with RasterBuffer objects.
    """

    def __init__(self, preset_service: PresetService | None = None):
        self._preset_service = preset_service

    @property
    def preset_service(self) -> PresetService:
        # the default store is only opened once a preset is asked for
        if self._preset_service is None:
            self._preset_service = PresetService()
        return self._preset_service

    @staticmethod
    def build_parameters(
        values: Mapping[str, Any] | None = None,
        base: AdjustmentParameters | None = None,
    ) -> AdjustmentParameters:
        """Parameters from *values*, layered over *base* when given."""
        base = base or AdjustmentParameters()
        return base.merged_with(values or {})

    def apply(self, image: RasterBuffer, params: AdjustmentParameters | Mapping[str, Any]) -> RasterBuffer:
        return apply_adjustments(image, params)

    def apply_preset(
        self,
        image: RasterBuffer,
        preset_name: str,
        overrides: Mapping[str, Any] | None = None,
    ) -> tuple[RasterBuffer, AdjustmentParameters]:
        """
        Reset to the preset's values (plus *overrides*) and render.

        Returns:
            (adjusted buffer, parameters actually applied)
        """
        params = self.build_parameters(overrides, base=self.preset_service.resolve(preset_name))
        logger.info(f"Applying preset {preset_name!r}: {params.to_dict()}")
        return self.apply(image, params), params
