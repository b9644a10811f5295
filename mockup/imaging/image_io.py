from __future__ import annotations
import base64
import binascii
import io
import logging
import re
from pathlib import Path
from typing import Union

import cv2
import numpy as np
import requests
from PIL import Image, UnidentifiedImageError

from mockup.errors import InvalidImageError, UnsupportedFormatError

# Optional AVIF support (no-op if unavailable)
try:
    import pillow_avif  # noqa: F401
except ImportError:
    pass

logger = logging.getLogger(__name__)

ImageSource = Union[str, Path, bytes, bytearray]


class ImageIO:
    """Loading local/remote/inline images as RGBA arrays, PNG encoding, filename utilities."""

    HTTP_TIMEOUT = 60

    @staticmethod
    def is_data_url(source) -> bool:
        return isinstance(source, str) and source.startswith("data:")

    @staticmethod
    def parse_data_url(data_url: str) -> bytes:
        comma = data_url.find(",")
        if comma == -1:
            raise InvalidImageError("Invalid data URL format")
        header, payload = data_url[:comma], data_url[comma + 1:]
        if not payload:
            raise InvalidImageError("Empty payload in data URL")
        if not header.endswith(";base64"):
            raise UnsupportedFormatError("Only base64 data URLs are supported")
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidImageError(f"Malformed base64 in data URL: {e}") from e

    @staticmethod
    def read_bytes(source: ImageSource) -> bytes:
        if isinstance(source, (bytes, bytearray)):
            return bytes(source)
        source = str(source)
        if ImageIO.is_data_url(source):
            return ImageIO.parse_data_url(source)
        if source.startswith(("http://", "https://")):
            logger.debug("Fetching image %s", source)
            r = requests.get(source, timeout=ImageIO.HTTP_TIMEOUT)
            r.raise_for_status()
            return r.content
        with open(source, "rb") as f:
            return f.read()

    @staticmethod
    def decode_rgba(data: bytes) -> np.ndarray:
        """Decode encoded image bytes to an (H, W, 4) uint8 RGBA array."""
        if not data:
            raise InvalidImageError("Empty image data")
        arr = np.frombuffer(data, dtype=np.uint8)
        img = cv2.imdecode(arr, cv2.IMREAD_UNCHANGED)
        if img is not None:
            return ImageIO._to_rgba(img)
        try:
            with Image.open(io.BytesIO(data)) as pil:
                rgba = pil.convert("RGBA")
                return np.array(rgba)
        except UnidentifiedImageError as e:
            raise UnsupportedFormatError("Unrecognized image format") from e
        except Image.DecompressionBombError as e:
            raise InvalidImageError(f"Image too large to decode: {e}") from e
        except (OSError, SyntaxError, ValueError) as e:
            raise InvalidImageError(f"Corrupt image data: {e}") from e

    @staticmethod
    def load_rgba(source: ImageSource) -> np.ndarray:
        return ImageIO.decode_rgba(ImageIO.read_bytes(source))

    @staticmethod
    def _to_rgba(img: np.ndarray) -> np.ndarray:
        if img.dtype != np.uint8:
            img = (img.astype(np.float32) / 257.0).round().astype(np.uint8)
        if img.ndim == 2:
            return cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
        channels = img.shape[2]
        if channels == 4:
            return cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)
        if channels == 3:
            return cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)
        raise UnsupportedFormatError(f"Unsupported channel count: {channels}")

    @staticmethod
    def encode_png(image: Union[np.ndarray, Image.Image]) -> bytes:
        if isinstance(image, np.ndarray):
            image = Image.fromarray(image)
        buf = io.BytesIO()
        image.save(buf, format="PNG")
        return buf.getvalue()

    @staticmethod
    def describe(source: ImageSource) -> str:
        if isinstance(source, (bytes, bytearray)):
            return f"<{len(source)} bytes>"
        source = str(source)
        if ImageIO.is_data_url(source):
            return f"data URL ({len(source)} chars)"
        return source

    @staticmethod
    def safe_slug(text: str, max_len: int = 60) -> str:
        s = re.sub(r"[^\w\-]+", "_", text, flags=re.UNICODE).strip("_")
        return s[:max_len] or "untitled"
