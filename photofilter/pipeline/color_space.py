"""Vectorised RGB ↔ HSB (hue/saturation/brightness) conversion.

Both directions work on whole channel planes in single precision and follow
the classic integer-RGB formulation: hue and saturation in [0, 1], brightness
is ``max(r, g, b) / 255``. The inverse rounds half up to the nearest byte, so
a pixel whose saturation is left untouched converts back to itself.
"""

from __future__ import annotations

import numpy as np

_F0 = np.float32(0.0)
_F1 = np.float32(1.0)
_F2 = np.float32(2.0)
_F4 = np.float32(4.0)
_F6 = np.float32(6.0)
_F255 = np.float32(255.0)
_HALF = np.float32(0.5)


def rgb_to_hsb(red: np.ndarray, green: np.ndarray, blue: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Return ``(hue, saturation, brightness)`` float32 planes for 0-255 integer planes."""

    r = red.astype(np.int32)
    g = green.astype(np.int32)
    b = blue.astype(np.int32)

    cmax = np.maximum(np.maximum(r, g), b)
    cmin = np.minimum(np.minimum(r, g), b)
    cmax_f = cmax.astype(np.float32)
    span = (cmax - cmin).astype(np.float32)

    brightness = cmax_f / _F255

    saturation = np.zeros(cmax.shape, dtype=np.float32)
    np.divide(span, cmax_f, out=saturation, where=cmax != 0)

    chromatic = saturation != _F0
    redc = np.zeros(cmax.shape, dtype=np.float32)
    greenc = np.zeros(cmax.shape, dtype=np.float32)
    bluec = np.zeros(cmax.shape, dtype=np.float32)
    np.divide((cmax - r).astype(np.float32), span, out=redc, where=chromatic)
    np.divide((cmax - g).astype(np.float32), span, out=greenc, where=chromatic)
    np.divide((cmax - b).astype(np.float32), span, out=bluec, where=chromatic)

    hue = np.select(
        [r == cmax, g == cmax],
        [bluec - greenc, _F2 + redc - bluec],
        default=_F4 + greenc - redc,
    ).astype(np.float32)
    hue = hue / _F6
    hue = np.where(hue < _F0, hue + _F1, hue).astype(np.float32)
    hue = np.where(chromatic, hue, _F0).astype(np.float32)

    return hue, saturation, brightness


def _to_byte(value: np.ndarray) -> np.ndarray:
    return (value * _F255 + _HALF).astype(np.int32)


def hsb_to_rgb(hue: np.ndarray, saturation: np.ndarray, brightness: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Return ``(red, green, blue)`` int32 planes in [0, 255] for float32 HSB planes."""

    hue = hue.astype(np.float32, copy=False)
    saturation = saturation.astype(np.float32, copy=False)
    brightness = brightness.astype(np.float32, copy=False)

    h = (hue - np.floor(hue)) * _F6
    f = h - np.floor(h)
    p = brightness * (_F1 - saturation)
    q = brightness * (_F1 - saturation * f)
    t = brightness * (_F1 - (saturation * (_F1 - f)))
    sector = h.astype(np.int32)

    v_b, p_b, q_b, t_b = _to_byte(brightness), _to_byte(p), _to_byte(q), _to_byte(t)
    zero = np.zeros_like(v_b)

    sectors = [sector == i for i in range(6)]
    red = np.select(sectors, [v_b, q_b, p_b, p_b, t_b, v_b], default=zero)
    green = np.select(sectors, [t_b, v_b, v_b, q_b, p_b, p_b], default=zero)
    blue = np.select(sectors, [p_b, p_b, t_b, v_b, v_b, q_b], default=zero)

    grey = saturation == _F0
    red = np.where(grey, v_b, red)
    green = np.where(grey, v_b, green)
    blue = np.where(grey, v_b, blue)

    return red, green, blue
