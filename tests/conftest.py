import sys
from io import BytesIO
from pathlib import Path

import numpy as np
import pytest
from PIL import Image as PILImage

ROOT = Path(__file__).resolve().parents[1]

# Make the package importable without an editable install.
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from photofilter.models.raster_buffer import RasterBuffer  # noqa: E402
from photofilter.repositories.preset_repository import PresetRepository  # noqa: E402
from photofilter.services.preset_service import PresetService  # noqa: E402


def solid(width: int, height: int, rgba=(200, 200, 200, 255)) -> RasterBuffer:
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[...] = rgba
    return RasterBuffer(pixels)


def encode(array: np.ndarray, fmt: str = "PNG") -> bytes:
    out = BytesIO()
    image = PILImage.fromarray(array)
    if fmt == "JPEG":
        image = image.convert("RGB")
    image.save(out, format=fmt)
    return out.getvalue()


@pytest.fixture
def random_buffer():
    """Deterministic 7x5 image with varied colours and alpha."""
    rng = np.random.default_rng(1234)
    return RasterBuffer(rng.integers(0, 256, size=(5, 7, 4), dtype=np.uint8))


@pytest.fixture
def preset_repository(tmp_path):
    return PresetRepository(tmp_path / "presets.db")


@pytest.fixture
def preset_service(preset_repository):
    return PresetService(preset_repository)
