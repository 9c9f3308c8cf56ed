from pathlib import Path
from typing import Union
import base64

from ..models.raster_buffer import RasterBuffer
from ..repositories.image_repository import ImageRepository


class ImageService:
    """I/O helpers.  No colour math here."""
    def __init__(self, image_repository: ImageRepository | None = None):
        self.image_repository = image_repository or ImageRepository()

    def create_buffer(self, width: int, height: int) -> RasterBuffer:
        return self.image_repository.create_buffer(width, height)

    def load(self, path: Union[str, Path]) -> RasterBuffer:
        """Decode a single image from disk into a RasterBuffer."""
        return self.image_repository.load(path)

    def load_bytes(self, data: bytes, label: str = "<upload>") -> RasterBuffer:
        return self.image_repository.load_bytes(data, label)

    @staticmethod
    def png_path(path: Union[str, Path]) -> Path:
        """Append ``.png`` unless the name already ends with it."""
        path = Path(path)
        if path.suffix.lower() != ".png":
            path = path.with_name(path.name + ".png")
        return path

    def save(self, buffer: RasterBuffer, path: Union[str, Path]) -> Path:
        """
        Business-level method to write the buffer as PNG.

        Returns:
            Path: where the file actually landed (suffix may have been added).
        """
        return self.image_repository.save_png(buffer, self.png_path(path))

    def to_png_bytes(self, buffer: RasterBuffer) -> bytes:
        return self.image_repository.encode_png(buffer)

    def to_data_url(self, buffer: RasterBuffer) -> str:
        """PNG data URL for JSON responses."""
        encoded = base64.b64encode(self.to_png_bytes(buffer)).decode("utf-8")
        return f"data:image/png;base64,{encoded}"
