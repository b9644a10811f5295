from __future__ import annotations
from dataclasses import dataclass

import numpy as np

from mockup.errors import InvalidImageError
from mockup.imaging.image_io import ImageIO, ImageSource


@dataclass(frozen=True)
class PixelBuffer:
    """Immutable RGBA pixels: width, height and a flat byte string (4 bytes per pixel)."""
    width: int
    height: int
    data: bytes

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise InvalidImageError(f"Invalid image dimensions {self.width}x{self.height}")
        if not isinstance(self.data, (bytes, bytearray, memoryview)):
            raise InvalidImageError(f"Pixel data must be bytes, got {type(self.data).__name__}")
        expected = self.width * self.height * 4
        if len(self.data) != expected:
            raise InvalidImageError(
                f"Pixel data has {len(self.data)} bytes, expected {expected} "
                f"for {self.width}x{self.height} RGBA"
            )
        if not isinstance(self.data, bytes):
            object.__setattr__(self, "data", bytes(self.data))

    @classmethod
    def from_array(cls, rgba: np.ndarray) -> "PixelBuffer":
        if rgba.ndim != 3 or rgba.shape[2] not in (3, 4):
            raise InvalidImageError(f"Expected (H, W, 3|4) array, got shape {rgba.shape}")
        if rgba.dtype != np.uint8:
            rgba = rgba.astype(np.uint8)
        if rgba.shape[2] == 3:
            alpha = np.full(rgba.shape[:2] + (1,), 255, dtype=np.uint8)
            rgba = np.concatenate([rgba, alpha], axis=2)
        h, w = rgba.shape[:2]
        return cls(w, h, np.ascontiguousarray(rgba).tobytes())

    @classmethod
    def from_encoded(cls, data: bytes) -> "PixelBuffer":
        return cls.from_array(ImageIO.decode_rgba(data))

    @classmethod
    def load(cls, source: ImageSource) -> "PixelBuffer":
        return cls.from_array(ImageIO.load_rgba(source))

    def as_array(self) -> np.ndarray:
        """Read-only (H, W, 4) view over the buffer."""
        return np.frombuffer(self.data, dtype=np.uint8).reshape(self.height, self.width, 4)
