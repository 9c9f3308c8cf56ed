from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime

from .adjustment_parameters import AdjustmentParameters


@dataclass
class Preset:
    """
    Data object: a named AdjustmentParameters snapshot as kept by the preset store.
    Built-in presets carry no timestamps.
    """
    name: str
    parameters: AdjustmentParameters
    created_at: datetime | None = None
    updated_at: datetime | None = None
    builtin: bool = False
