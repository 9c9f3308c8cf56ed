"""Per-pixel colour adjustment pipeline.

- color_space: RGB ↔ HSB conversion used by the saturation stage
- stages: the six kernels and their fixed order
- adjustment_pipeline: `apply_adjustments`, the single entry point
"""

from .adjustment_pipeline import apply_adjustments
from .stages import STAGES, Stage

__all__ = ["STAGES", "Stage", "apply_adjustments"]
