from io import BytesIO
from pathlib import Path
from typing import Union
import logging
import os

import numpy as np
from PIL import Image as PILImage, UnidentifiedImageError
from dotenv import load_dotenv

from ..errors import DecodeError, EncodeError
from ..models.raster_buffer import RasterBuffer

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# Pillow modes carrying more than 8 bits per greyscale sample (16-bit PNGs)
_WIDE_MODES = {"I;16", "I;16B", "I;16L", "I;16N", "I"}


class ImageRepository:
    """
    Handles file I/O between encoded images and RasterBuffer entities.
    Decodes JPEG/PNG/GIF, always encodes PNG.
    """
    def __init__(self):
        formats = os.getenv("DECODE_FORMATS", "JPEG,PNG,GIF")
        self.DECODE_FORMATS = {fmt.strip().upper() for fmt in formats.split(",") if fmt.strip()}

    @staticmethod
    def create_buffer(width: int, height: int) -> RasterBuffer:
        return RasterBuffer.create(width, height)

    @staticmethod
    def _narrow(pil_img: PILImage.Image) -> PILImage.Image:
        """Scale wide greyscale down to 8 bits; convert() would clip instead."""
        if pil_img.mode not in _WIDE_MODES:
            return pil_img
        wide = np.clip(np.asarray(pil_img).astype(np.int64), 0, 65535)
        return PILImage.fromarray((wide >> 8).astype(np.uint8))

    def _decode(self, source, label: str) -> RasterBuffer:
        try:
            with PILImage.open(source) as pil_img:
                fmt = pil_img.format
                if fmt not in self.DECODE_FORMATS:
                    raise DecodeError(f"Unsupported image format {fmt!r}: {label}")
                # GIFs decode their first frame only
                rgba = self._narrow(pil_img).convert("RGBA")
        except FileNotFoundError as err:
            raise DecodeError(f"Image not found: {label}") from err
        except (UnidentifiedImageError, OSError, ValueError) as err:
            raise DecodeError(f"Image unreadable: {label} ({err})") from err

        arr = np.asarray(rgba, dtype=np.uint8)
        logger.debug(f"Decoded {fmt} {rgba.width}x{rgba.height}: {label}")
        return RasterBuffer.from_array(arr)

    def load(self, path: Union[str, Path]) -> RasterBuffer:
        path = Path(path)
        return self._decode(path, str(path))

    def load_bytes(self, data: bytes, label: str = "<bytes>") -> RasterBuffer:
        return self._decode(BytesIO(data), label)

    @staticmethod
    def _to_pil(buffer: RasterBuffer) -> PILImage.Image:
        return PILImage.fromarray(np.ascontiguousarray(buffer.pixels))  # (H, W, 4) uint8 → RGBA

    def save_png(self, buffer: RasterBuffer, path: Union[str, Path]) -> Path:
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._to_pil(buffer).save(path, format="PNG")
        except (OSError, ValueError, SystemError) as err:
            raise EncodeError(f"Could not write PNG {path}: {err}") from err
        logger.info(f"Saved {buffer.width}x{buffer.height} PNG: {path}")
        return path

    def encode_png(self, buffer: RasterBuffer) -> bytes:
        out = BytesIO()
        try:
            self._to_pil(buffer).save(out, format="PNG")
        except (OSError, ValueError, SystemError) as err:
            raise EncodeError(f"Could not encode PNG: {err}") from err
        return out.getvalue()
