from __future__ import annotations
from dataclasses import dataclass
import numpy as np

from ..errors import InvalidDimensionsError, OutOfBoundsError

CHANNELS = 4  # R, G, B, A


@dataclass(frozen=True)
class Pixel:
    """
    One RGBA sample, 8 bits per channel, alpha not premultiplied.
    """
    red: int
    green: int
    blue: int
    alpha: int = 255

    def __post_init__(self):
        for channel in (self.red, self.green, self.blue, self.alpha):
            if not 0 <= channel <= 255:
                raise ValueError(f"Channel value out of range [0, 255]: {self}")

    def as_tuple(self) -> tuple[int, int, int, int]:
        return self.red, self.green, self.blue, self.alpha


@dataclass(eq=False)
class RasterBuffer:
    """
    Data object owning a dense row-major RGBA grid.
    No decoding or colour math in here, only storage and pixel access.
    """
    pixels: np.ndarray  # Shape (H, W, 4), dtype uint8, RGBA order.

    def __post_init__(self):
        if not isinstance(self.pixels, np.ndarray):
            raise InvalidDimensionsError(f"Expected numpy array, got {type(self.pixels).__name__}")
        if self.pixels.ndim != 3 or self.pixels.shape[2] != CHANNELS:
            raise InvalidDimensionsError(f"Expected (H, W, 4) pixels, got shape {self.pixels.shape}")
        if self.pixels.dtype != np.uint8:
            raise InvalidDimensionsError(f"Expected uint8 pixels, got {self.pixels.dtype}")

    # ── Construction ─────────────────────────────────────────────────
    @classmethod
    def create(cls, width: int, height: int) -> RasterBuffer:
        """All-transparent-black buffer of the given size (0 is allowed)."""
        if width < 0 or height < 0:
            raise InvalidDimensionsError(f"Invalid dimensions {width}x{height}")
        return cls(np.zeros((height, width, CHANNELS), dtype=np.uint8))

    @classmethod
    def from_array(cls, array: np.ndarray) -> RasterBuffer:
        """Build a buffer with its own copy of *array*."""
        return cls(np.array(array, dtype=np.uint8, copy=True))

    # ── Queries ──────────────────────────────────────────────────────
    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    def _check_bounds(self, x: int, y: int) -> None:
        if x < 0 or y < 0 or x >= self.width or y >= self.height:
            raise OutOfBoundsError(
                f"Pixel ({x}, {y}) outside {self.width}x{self.height} buffer"
            )

    def get_pixel(self, x: int, y: int) -> Pixel:
        self._check_bounds(x, y)
        r, g, b, a = (int(v) for v in self.pixels[y, x])
        return Pixel(r, g, b, a)

    def set_pixel(self, x: int, y: int, pixel: Pixel) -> None:
        self._check_bounds(x, y)
        self.pixels[y, x] = pixel.as_tuple()

    def copy(self) -> RasterBuffer:
        """Same size and content, independent storage."""
        return RasterBuffer(self.pixels.copy())

    def __eq__(self, other):
        if not isinstance(other, RasterBuffer):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and np.array_equal(self.pixels, other.pixels)

    def __repr__(self):
        return f"RasterBuffer(width={self.width}, height={self.height})"
