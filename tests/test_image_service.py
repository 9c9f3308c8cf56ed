import base64
from io import BytesIO

import numpy as np
import pytest
from PIL import Image as PILImage

from conftest import encode
from photofilter.errors import DecodeError, EncodeError
from photofilter.models.raster_buffer import Pixel
from photofilter.services.image_service import ImageService


@pytest.fixture
def service():
    return ImageService()


def test_png_round_trip_keeps_every_channel(service, random_buffer, tmp_path):
    written = service.save(random_buffer, tmp_path / "out.png")
    assert written == tmp_path / "out.png"
    assert service.load(written) == random_buffer


def test_save_appends_png_suffix(service, random_buffer, tmp_path):
    written = service.save(random_buffer, tmp_path / "nested" / "result.jpg")
    assert written.name == "result.jpg.png"
    assert written.exists()
    with PILImage.open(written) as img:
        assert img.format == "PNG"
        assert img.mode == "RGBA"


def test_png_path():
    assert ImageService.png_path("a/b.PNG").name == "b.PNG"
    assert ImageService.png_path("photo").name == "photo.png"


def test_jpeg_decodes_opaque(service):
    data = encode(np.full((6, 8, 4), 180, dtype=np.uint8), "JPEG")
    buffer = service.load_bytes(data)
    assert (buffer.width, buffer.height) == (8, 6)
    assert (buffer.pixels[..., 3] == 255).all()


def test_gif_decodes_first_frame(service):
    rgb = np.zeros((3, 5, 3), dtype=np.uint8)
    rgb[..., 0] = 255
    out = PILImage.fromarray(rgb)
    stream = BytesIO()
    out.save(stream, format="GIF")
    buffer = service.load_bytes(stream.getvalue())
    assert (buffer.width, buffer.height) == (5, 3)
    assert buffer.get_pixel(0, 0).as_tuple() == (255, 0, 0, 255)


def test_garbage_bytes_raise_decode_error(service):
    with pytest.raises(DecodeError):
        service.load_bytes(b"definitely not an image")


def test_missing_file_raises_decode_error(service, tmp_path):
    with pytest.raises(DecodeError, match="not found"):
        service.load(tmp_path / "missing.png")


def test_unsupported_format_raises_decode_error(service):
    data = encode(np.zeros((2, 2, 4), dtype=np.uint8)[..., :3].copy(), "BMP")
    with pytest.raises(DecodeError, match="Unsupported"):
        service.load_bytes(data)


def test_unwritable_destination_raises_encode_error(service, random_buffer, tmp_path):
    blocker = tmp_path / "file.txt"
    blocker.write_text("x")
    with pytest.raises(EncodeError):
        service.save(random_buffer, blocker / "out.png")


def test_data_url(service, random_buffer):
    url = service.to_data_url(random_buffer)
    assert url.startswith("data:image/png;base64,")
    png = base64.b64decode(url.split(",", 1)[1])
    assert service.load_bytes(png) == random_buffer


def test_create_buffer(service):
    buffer = service.create_buffer(3, 4)
    assert (buffer.width, buffer.height) == (3, 4)


def test_sixteen_bit_png_is_scaled_to_eight_bits(service):
    wide = np.array([[0, 255], [32768, 65535]], dtype=np.uint16)
    stream = BytesIO()
    PILImage.fromarray(wide).save(stream, format="PNG")
    buffer = service.load_bytes(stream.getvalue())
    assert buffer.get_pixel(0, 0) == Pixel(0, 0, 0, 255)
    assert buffer.get_pixel(1, 0) == Pixel(0, 0, 0, 255)
    assert buffer.get_pixel(0, 1) == Pixel(128, 128, 128, 255)
    assert buffer.get_pixel(1, 1) == Pixel(255, 255, 255, 255)
