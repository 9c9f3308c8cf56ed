"""The six per-pixel colour stages and their fixed running order.

Every kernel takes an ``(H, W, 4)`` uint8 RGBA array plus its integer
parameter and returns a freshly allocated array of the same shape; the input is
never written to. Arithmetic is float32 throughout and float→int conversion
truncates toward zero before clamping to [0, 255], so results are bit-exact
across platforms. Alpha is copied through untouched by every kernel.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable
import math

import numpy as np

from ..models.adjustment_parameters import NEUTRAL_VALUE, Adjustment
from .color_space import hsb_to_rgb, rgb_to_hsb

Kernel = Callable[[np.ndarray, int], np.ndarray]

_F0 = np.float32(0.0)
_F1 = np.float32(1.0)
_F100 = np.float32(100.0)
_MID = np.float32(128.0)
_FADE_GREY = np.float32(220.0)
_TEMPERATURE_SHIFT = np.float32(30.0)


def _fraction(value: int) -> np.float32:
    """``value / 100`` in single precision."""
    return np.float32(value) / _F100


def _to_channel(values: np.ndarray) -> np.ndarray:
    """Truncate toward zero, clamp to a byte."""
    return np.clip(np.trunc(values), 0, 255).astype(np.uint8)


def _with_rgb(rgba: np.ndarray, rgb: np.ndarray) -> np.ndarray:
    out = np.empty_like(rgba)
    out[..., :3] = rgb
    out[..., 3] = rgba[..., 3]
    return out


# ── Kernels ──────────────────────────────────────────────────────────
def adjust_brightness(rgba: np.ndarray, value: int) -> np.ndarray:
    scale = _F1 + _fraction(value)
    rgb = rgba[..., :3].astype(np.float32) * scale
    return _with_rgb(rgba, _to_channel(rgb))


def contrast_factor(value: int) -> np.float32:
    """
    Classic 259/255 contrast curve factor.
    Singular at value == 259, which the [-100, 100] domain never reaches.
    """
    return (np.float32(259.0) * np.float32(value + 255)) / (np.float32(255.0) * np.float32(259 - value))


def adjust_contrast(rgba: np.ndarray, value: int) -> np.ndarray:
    factor = contrast_factor(value)
    rgb = factor * (rgba[..., :3].astype(np.float32) - _MID) + _MID
    return _with_rgb(rgba, _to_channel(rgb))


def adjust_saturation(rgba: np.ndarray, value: int) -> np.ndarray:
    scale = _F1 + _fraction(value)
    hue, saturation, brightness = rgb_to_hsb(rgba[..., 0], rgba[..., 1], rgba[..., 2])
    saturation = np.clip(saturation * scale, _F0, _F1).astype(np.float32)
    red, green, blue = hsb_to_rgb(hue, saturation, brightness)
    rgb = np.stack([red, green, blue], axis=-1)
    return _with_rgb(rgba, np.clip(rgb, 0, 255).astype(np.uint8))


def temperature_shift(value: int) -> int:
    """Red gain (and blue loss) in channel units; positive warms."""
    return int(_fraction(value) * _TEMPERATURE_SHIFT)


def adjust_temperature(rgba: np.ndarray, value: int) -> np.ndarray:
    shift = temperature_shift(value)
    out = rgba.copy()
    out[..., 0] = np.clip(rgba[..., 0].astype(np.int16) + shift, 0, 255)
    out[..., 2] = np.clip(rgba[..., 2].astype(np.int16) - shift, 0, 255)
    return out


def apply_fade(rgba: np.ndarray, value: int) -> np.ndarray:
    strength = _fraction(value)
    keep = _F1 - strength
    lift = _FADE_GREY * strength
    rgb = rgba[..., :3].astype(np.float32) * keep + lift
    return _with_rgb(rgba, _to_channel(rgb))


def vignette_factors(width: int, height: int, value: int) -> np.ndarray:
    """
    Per-pixel darkening factor, shape (H, W), float32.
    Distances are measured from the integer centre (W // 2, H // 2) and
    normalised by the centre-to-origin distance.
    """
    strength = _fraction(value)
    center_x = width // 2
    center_y = height // 2
    max_distance = np.float32(math.sqrt(center_x * center_x + center_y * center_y))
    if max_distance == _F0:
        return np.ones((height, width), dtype=np.float32)

    dx = (np.arange(width, dtype=np.int64) - center_x).astype(np.float32)
    dy = (np.arange(height, dtype=np.int64) - center_y).astype(np.float32)
    distance = np.sqrt(dx[np.newaxis, :] * dx[np.newaxis, :] + dy[:, np.newaxis] * dy[:, np.newaxis])
    factor = _F1 - (distance / max_distance) * strength
    return np.maximum(_F0, factor).astype(np.float32)


def apply_vignette(rgba: np.ndarray, value: int) -> np.ndarray:
    height, width = rgba.shape[:2]
    factor = vignette_factors(width, height, value)
    rgb = rgba[..., :3].astype(np.float32) * factor[..., np.newaxis]
    return _with_rgb(rgba, _to_channel(rgb))


# ── Stage table ──────────────────────────────────────────────────────
def _neutral_at_zero(value: int) -> bool:
    return value == NEUTRAL_VALUE


def _neutral_unless_positive(value: int) -> bool:
    # fade blends toward grey; there is no "away from grey" direction
    return value <= NEUTRAL_VALUE


@dataclass(frozen=True)
class Stage:
    """One entry of the pipeline: which adjustment, how to run it, when to skip it."""
    adjustment: Adjustment
    kernel: Kernel
    is_neutral: Callable[[int], bool] = _neutral_at_zero

    @property
    def name(self) -> str:
        return self.adjustment.value

    def run(self, rgba: np.ndarray, value: int) -> np.ndarray:
        """Input array itself when neutral, otherwise a new array."""
        if self.is_neutral(value):
            return rgba
        return self.kernel(rgba, value)


STAGES: tuple[Stage, ...] = (
    Stage(Adjustment.BRIGHTNESS, adjust_brightness),
    Stage(Adjustment.CONTRAST, adjust_contrast),
    Stage(Adjustment.SATURATION, adjust_saturation),
    Stage(Adjustment.TEMPERATURE, adjust_temperature),
    Stage(Adjustment.FADE, apply_fade, _neutral_unless_positive),
    Stage(Adjustment.VIGNETTE, apply_vignette),
)
