from __future__ import annotations
from collections.abc import Mapping
from typing import Any, Dict, List
import logging

from ..errors import InvalidPresetNameError, PresetNotFoundError
from ..models.adjustment_parameters import AdjustmentParameters
from ..models.preset import Preset
from ..repositories.preset_repository import PresetRepository

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100

BUILTIN_PRESETS: Dict[str, AdjustmentParameters] = {
    "Vintage": AdjustmentParameters(Contrast=20, Fade=40, Temperature=-20),
    "Summer": AdjustmentParameters(Brightness=10, Saturation=30, Temperature=20),
    "Noir": AdjustmentParameters(Contrast=40, Saturation=-100, Vignette=50),
}


class PresetService:
    """
    Business logic for named presets.
    Delegates storage to PresetRepository and layers the built-in catalogue on top.
    """

    def __init__(self, repository: PresetRepository | None = None):
        self.repository = repository or PresetRepository()

    @staticmethod
    def normalise_name(name: str) -> str:
        if not isinstance(name, str):
            raise InvalidPresetNameError(f"Preset name must be a string, got {name!r}")
        name = name.strip()
        if not name:
            raise InvalidPresetNameError("Preset name must not be empty")
        if len(name) > MAX_NAME_LENGTH:
            raise InvalidPresetNameError(f"Preset name longer than {MAX_NAME_LENGTH} characters")
        return name

    def save_preset(self, name: str, params: AdjustmentParameters | Mapping[str, Any]) -> str:
        name = self.normalise_name(name)
        if not isinstance(params, AdjustmentParameters):
            params = AdjustmentParameters(params)
        self.repository.save(name, params)
        return name

    def load_presets(self) -> Dict[str, AdjustmentParameters]:
        return self.repository.load_all()

    def delete_preset(self, name: str) -> bool:
        return self.repository.delete(self.normalise_name(name))

    def list_preset_names(self) -> List[str]:
        return self.repository.list_names()

    @staticmethod
    def builtin_names() -> List[str]:
        return list(BUILTIN_PRESETS)

    @staticmethod
    def builtin_presets() -> Dict[str, AdjustmentParameters]:
        return dict(BUILTIN_PRESETS)

    def all_presets(self) -> Dict[str, AdjustmentParameters]:
        """Built-ins first, then stored presets (a stored name shadows a built-in)."""
        merged = dict(BUILTIN_PRESETS)
        merged.update(self.load_presets())
        return merged

    def get_preset(self, name: str) -> Preset:
        """
        Stored preset by exact name, else built-in by case-insensitive name.

        Raises:
            PresetNotFoundError: when neither exists.
        """
        name = self.normalise_name(name)
        stored = self.repository.get(name)
        if stored is not None:
            return stored
        for builtin_name, params in BUILTIN_PRESETS.items():
            if builtin_name.lower() == name.lower():
                return Preset(name=builtin_name, parameters=params, builtin=True)
        raise PresetNotFoundError(f"No preset named {name!r}")

    def resolve(self, name: str) -> AdjustmentParameters:
        return self.get_preset(name).parameters
