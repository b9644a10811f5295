from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
import requests
from PIL import Image

from mockup.errors import ConfigurationError, ImageLoadError, InvalidImageError
from mockup.imaging.image_io import ImageIO, ImageSource
from mockup.imaging.logo_decoder import DecodeStatus, LogoDecodeResult, LogoDecoder
from mockup.imaging.logo_fitter import LogoFitter
from mockup.imaging.pixel_buffer import PixelBuffer
from mockup.models import LogoPlacement

logger = logging.getLogger(__name__)

BackgroundSource = Union[PixelBuffer, np.ndarray, ImageSource]


@dataclass(frozen=True)
class CompositeResult:
    png_bytes: bytes
    placement: LogoPlacement
    canvas_width: int
    canvas_height: int
    logo: LogoDecodeResult

    @property
    def used_fallback(self) -> bool:
        return self.logo.status is DecodeStatus.FALLBACK


class LogoCompositor:
    """Places a logo onto a product background and renders the final PNG."""

    @staticmethod
    def load_background(background: BackgroundSource) -> np.ndarray:
        if isinstance(background, PixelBuffer):
            return background.as_array()
        if isinstance(background, np.ndarray):
            return PixelBuffer.from_array(background).as_array()
        try:
            return ImageIO.load_rgba(background)
        except (InvalidImageError, OSError, requests.RequestException) as e:
            raise ImageLoadError(
                f"Background unreadable ({ImageIO.describe(background)}): {e}"
            ) from e

    @staticmethod
    def compose(background: BackgroundSource, logo: Union[ImageSource, LogoDecodeResult],
                placement: LogoPlacement, canvas_w: Optional[int] = None,
                canvas_h: Optional[int] = None, allow_fallback: bool = True) -> CompositeResult:
        base = LogoCompositor.load_background(background)
        native_h, native_w = base.shape[:2]
        canvas_w = canvas_w or native_w
        canvas_h = canvas_h or native_h
        if canvas_w <= 0 or canvas_h <= 0:
            raise ConfigurationError(f"Invalid canvas size {canvas_w}x{canvas_h}")
        if (canvas_w, canvas_h) != (native_w, native_h):
            base = LogoFitter.resize(base, canvas_w, canvas_h)

        decoded = logo if isinstance(logo, LogoDecodeResult) else LogoDecoder.decode(logo, allow_fallback)
        logo_img = decoded.require_image()

        final = LogoFitter.fit_placement(logo_img.width, logo_img.height, placement,
                                         canvas_w, canvas_h)
        scaled = LogoFitter.resize(np.array(logo_img.convert("RGBA")), final.width, final.height)

        card_rgba = Image.fromarray(base.copy())
        card_rgba.alpha_composite(Image.fromarray(scaled), (final.x, final.y))

        logger.debug("Logo drawn: requested=%s final=%s logo=%dx%d canvas=%dx%d status=%s",
                     placement, final, logo_img.width, logo_img.height,
                     canvas_w, canvas_h, decoded.status.value)
        return CompositeResult(
            png_bytes=ImageIO.encode_png(card_rgba),
            placement=final,
            canvas_width=canvas_w,
            canvas_height=canvas_h,
            logo=decoded,
        )
