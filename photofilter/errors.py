"""Exception hierarchy shared by the core pipeline and its collaborators."""


class PhotoFilterError(Exception):
    """Base class for every error raised by photofilter."""


class InvalidDimensionsError(PhotoFilterError, ValueError):
    """A raster buffer was constructed with nonsensical dimensions."""


class OutOfBoundsError(PhotoFilterError, IndexError):
    """Pixel access outside the declared buffer dimensions."""


class InvalidParameterError(PhotoFilterError, ValueError):
    """An adjustment name or value outside the accepted domain."""


class DecodeError(PhotoFilterError):
    """An image file could not be decoded (missing, unsupported or corrupt)."""


class EncodeError(PhotoFilterError):
    """A raster buffer could not be encoded or written."""


class PresetStoreError(PhotoFilterError):
    """The preset store failed to read or write."""


class InvalidPresetNameError(PhotoFilterError, ValueError):
    """A preset name is empty or too long."""


class PresetNotFoundError(PhotoFilterError, KeyError):
    """No stored or built-in preset carries the requested name."""
