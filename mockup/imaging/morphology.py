from __future__ import annotations
import math

import cv2
import numpy as np

from mockup.settings import EdgeSmoothing, NoiseReduction


class MorphologyFilter:
    """Denoise (opening) and smooth (blur + re-threshold) a binary mask.

    Neither step can grow the mask: opening is anti-extensive, and the
    smoothed mask is intersected with its input.
    """

    @staticmethod
    def open(mask: np.ndarray, kernel_size: int, iterations: int) -> np.ndarray:
        kernel = np.ones((kernel_size, kernel_size), np.uint8)
        out = mask
        for _ in range(iterations):
            out = cv2.erode(out, kernel)
            out = cv2.dilate(out, kernel)
        return out

    @staticmethod
    def smooth(mask: np.ndarray, blur_radius: int, threshold: int) -> np.ndarray:
        sigma = blur_radius / 3.0
        ksize = 2 * math.ceil(blur_radius) + 1
        blurred = cv2.GaussianBlur(mask, (ksize, ksize), sigmaX=sigma, sigmaY=sigma,
                                   borderType=cv2.BORDER_REPLICATE)
        smoothed = np.where(blurred >= threshold, 255, 0).astype(np.uint8)
        return cv2.bitwise_and(smoothed, mask)

    @staticmethod
    def apply(mask: np.ndarray, noise: NoiseReduction, edges: EdgeSmoothing) -> np.ndarray:
        out = mask
        if noise.enabled:
            out = MorphologyFilter.open(out, noise.kernel_size, noise.iterations)
        if edges.enabled:
            out = MorphologyFilter.smooth(out, edges.blur_radius, edges.threshold)
        return out

    @staticmethod
    def area(mask: np.ndarray) -> int:
        return int(cv2.countNonZero(mask))
