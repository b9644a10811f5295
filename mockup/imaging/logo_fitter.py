from __future__ import annotations
import math

import cv2
import numpy as np

from mockup.models import LogoPlacement

# A logo may never cover more than this share of the canvas on either axis.
MAX_CANVAS_FRACTION = 0.4


class LogoFitter:
    """Aspect-preserving 'contain' fit of a logo into a requested box, clamped to the canvas."""

    @staticmethod
    def fit_placement(logo_w: int, logo_h: int, requested: LogoPlacement,
                      canvas_w: int, canvas_h: int,
                      max_fraction: float = MAX_CANVAS_FRACTION) -> LogoPlacement:
        cap_w = canvas_w * max_fraction
        cap_h = canvas_h * max_fraction
        box_w = min(requested.width, cap_w)
        box_h = min(requested.height, cap_h)

        logo_as = logo_w / float(logo_h)
        if box_w / box_h > logo_as:
            # box is proportionally wider than the logo: height binds
            fit_h = box_h
            fit_w = fit_h * logo_as
        else:
            fit_w = box_w
            fit_h = fit_w / logo_as

        w = max(1, min(int(round(fit_w)), int(math.floor(cap_w))))
        h = max(1, min(int(round(fit_h)), int(math.floor(cap_h))))
        x = max(0, min(int(requested.x), canvas_w - w))
        y = max(0, min(int(requested.y), canvas_h - h))
        return LogoPlacement(x, y, w, h)

    @staticmethod
    def resize(src_rgba: np.ndarray, w: int, h: int) -> np.ndarray:
        sh, sw = src_rgba.shape[:2]
        shrinking = w < sw or h < sh
        interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_LINEAR
        return cv2.resize(src_rgba, (w, h), interpolation=interpolation)
