"""Photo filter: ordered per-pixel color adjustments for RGBA images."""

__version__ = "1.0.0"
