from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import requests
from PIL import Image, ImageDraw, ImageFont

from mockup.errors import InvalidImageError, LogoDecodeError
from mockup.imaging.image_io import ImageIO, ImageSource

logger = logging.getLogger(__name__)

FALLBACK_SIZE = 100
FALLBACK_FILL = (0, 0, 0, 128)
FALLBACK_TEXT = "Logo"


class DecodeStatus(str, Enum):
    DECODED = "decoded"
    FALLBACK = "fallback"
    FAILED = "failed"


@dataclass(frozen=True)
class LogoDecodeResult:
    """Outcome of decoding a logo: the image to draw, or why a placeholder replaced it."""
    status: DecodeStatus
    image: Optional[Image.Image]
    reason: Optional[str] = None

    def require_image(self) -> Image.Image:
        if self.image is None:
            raise LogoDecodeError(self.reason or "Logo could not be decoded")
        return self.image


class LogoDecoder:
    """Decodes logo bytes / data URLs / paths, substituting a placeholder glyph on failure."""

    @staticmethod
    def placeholder() -> Image.Image:
        img = Image.new("RGBA", (FALLBACK_SIZE, FALLBACK_SIZE), FALLBACK_FILL)
        draw = ImageDraw.Draw(img)
        font = ImageFont.load_default()
        left, top, right, bottom = draw.textbbox((0, 0), FALLBACK_TEXT, font=font)
        x = (FALLBACK_SIZE - (right - left)) // 2
        y = (FALLBACK_SIZE - (bottom - top)) // 2
        draw.text((x, y), FALLBACK_TEXT, fill=(255, 255, 255, 255), font=font)
        return img

    @staticmethod
    def decode(source: ImageSource, allow_fallback: bool = True) -> LogoDecodeResult:
        try:
            rgba = ImageIO.load_rgba(source)
        except (InvalidImageError, OSError, requests.RequestException) as e:
            reason = f"{type(e).__name__}: {e}"
            if not allow_fallback:
                logger.error("Logo decode failed for %s: %s", ImageIO.describe(source), reason)
                return LogoDecodeResult(DecodeStatus.FAILED, None, reason)
            logger.warning("Logo decode failed for %s, using placeholder: %s",
                           ImageIO.describe(source), reason)
            return LogoDecodeResult(DecodeStatus.FALLBACK, LogoDecoder.placeholder(), reason)
        return LogoDecodeResult(DecodeStatus.DECODED, Image.fromarray(rgba))
