from __future__ import annotations
from typing import Tuple

import cv2
import numpy as np

from mockup.errors import InvalidImageError
from mockup.imaging.pixel_buffer import PixelBuffer
from mockup.models import HSVColor
from mockup.settings import ColorRange

# Tolerance is a percentage; on the hue circle 1% is 3.6 degrees.
HUE_DEGREES_PER_PERCENT = 3.6


class ColorClassifier:
    """Per-pixel test of whether a pixel falls inside a target HSV range."""

    @staticmethod
    def to_hsv(rgba: np.ndarray) -> np.ndarray:
        """(H, W, 3) float32 HSV: hue in degrees, saturation and value in percent."""
        if rgba.ndim != 3 or rgba.shape[2] < 3:
            raise InvalidImageError(f"Expected (H, W, 3|4) array, got shape {rgba.shape}")
        rgb = rgba[:, :, :3].astype(np.float32) / 255.0
        hsv = cv2.cvtColor(rgb, cv2.COLOR_RGB2HSV)
        hsv[:, :, 1:] *= 100.0
        return hsv

    @staticmethod
    def rgb_to_hsv(r: int, g: int, b: int) -> HSVColor:
        px = np.array([[[r, g, b]]], dtype=np.uint8)
        h, s, v = ColorClassifier.to_hsv(px)[0, 0]
        return HSVColor(round(float(h), 2), round(float(s), 2), round(float(v), 2))

    @staticmethod
    def hue_bounds(color_range: ColorRange, tolerance: float) -> Tuple[float, float]:
        lo = color_range.h_min - tolerance * HUE_DEGREES_PER_PERCENT
        hi = color_range.h_max + tolerance * HUE_DEGREES_PER_PERCENT
        if color_range.h_max < color_range.h_min:
            # range wraps through red, e.g. 340..20
            hi += 360.0
        return lo, hi

    @staticmethod
    def hsv_mask(hsv: np.ndarray, color_range: ColorRange, tolerance: float) -> np.ndarray:
        """Boolean mask of HSV pixels inside the range widened by `tolerance` percent."""
        h, s, v = hsv[:, :, 0], hsv[:, :, 1], hsv[:, :, 2]

        lo, hi = ColorClassifier.hue_bounds(color_range, tolerance)
        if hi - lo >= 360.0:
            hue_ok = np.ones(h.shape, dtype=bool)
        elif lo < 0.0:
            hue_ok = (h >= lo + 360.0) | (h <= hi)
        elif hi > 360.0:
            hue_ok = (h >= lo) | (h <= hi - 360.0)
        else:
            hue_ok = (h >= lo) & (h <= hi)

        s_lo = max(0.0, color_range.s_min - tolerance)
        s_hi = min(100.0, color_range.s_max + tolerance)
        v_lo = max(0.0, color_range.v_min - tolerance)
        v_hi = min(100.0, color_range.v_max + tolerance)
        return hue_ok & (s >= s_lo) & (s <= s_hi) & (v >= v_lo) & (v <= v_hi)

    @staticmethod
    def classify(image: PixelBuffer, color_range: ColorRange, tolerance: float,
                 opacity_floor: int = 128) -> np.ndarray:
        """Binary uint8 mask (0/255) of target-colored, sufficiently opaque pixels."""
        if not isinstance(image, PixelBuffer):
            raise InvalidImageError(f"Expected PixelBuffer, got {type(image).__name__}")
        rgba = image.as_array()
        opaque = rgba[:, :, 3] >= opacity_floor
        if not opaque.any():
            return np.zeros((image.height, image.width), dtype=np.uint8)
        target = ColorClassifier.hsv_mask(ColorClassifier.to_hsv(rgba), color_range, tolerance)
        return np.where(opaque & target, 255, 0).astype(np.uint8)
